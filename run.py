import os

from dotenv import load_dotenv

# Carrega variáveis de ambiente do .env se existir (antes de importar Config)
load_dotenv()

from textguard import create_app, db  # noqa: E402

app = create_app(os.getenv("FLASK_CONFIG") or "default")


@app.shell_context_processor
def make_shell_context():
    """Permite acesso fácil ao db no 'flask shell'."""
    return dict(db=db)


if __name__ == "__main__":
    app.run(debug=True)
