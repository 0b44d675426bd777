import click

from . import db
from .seeder import seed_books


def register_cli(app):
    @app.cli.command("dev-sync-db")
    def dev_sync_db():
        """DEV-only: drop_all + create_all e seed dos livros de exemplo.

        Destrutivo. Não usar em produção.
        """
        click.echo("[dev-sync-db] Iniciando sincronização destrutiva de DEV...")
        click.echo("[dev-sync-db] Removendo tabelas (se existirem)...")
        db.drop_all()
        click.echo("[dev-sync-db] Criando tabelas...")
        db.create_all()
        click.echo("[dev-sync-db] Executando seed...")
        created = seed_books()
        click.echo(
            f"[dev-sync-db] Banco sincronizado ({created} livros inseridos)."
        )

    @app.cli.command("textguard-policy")
    def textguard_policy():
        """Mostra a política ativa e a tabela campo -> codec."""
        state = app.extensions.get("textguard")
        if state is None:
            raise click.ClickException("TextGuard não inicializado.")
        seqs = ", ".join(repr(s) for s in state.policies.boundary.disallowed)
        click.echo(f"disallowed: {seqs}")
        click.echo(
            "boundary: " + ("on" if state.boundary is not None else "off")
        )
        if state.codecs is None:
            click.echo("normalizer: off")
            return
        click.echo("normalizer: on")
        for column, kind, action in state.codecs.describe():
            click.echo(f"  {column:<30} {kind:<7} {action}")
