import asyncio

import typer
import uvicorn
from sqlalchemy import select

app = typer.Typer(help="CitySense - community issue reporting")


@app.command()
def start(
    host: str | None = typer.Option(None, help="Bind address (default from settings)"),
    port: int | None = typer.Option(None, help="Port (default from settings)"),
    reload: bool = typer.Option(False, help="Auto-reload on code changes"),
) -> None:
    """Start the CitySense API server."""
    from backend.app.config import settings

    typer.echo("Starting CitySense...")
    uvicorn.run(
        "backend.app.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


async def _promote(email: str, role: str) -> bool:
    from backend.app.db import async_session, init_db
    from backend.app.models.user import User

    await init_db()
    async with async_session() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user is None:
            return False
        user.role = role
        await session.commit()
    return True


@app.command()
def promote(
    email: str,
    demote: bool = typer.Option(False, "--demote", help="Set the role back to citizen"),
) -> None:
    """Grant (or with --demote, revoke) the admin role for a registered user."""
    role = "citizen" if demote else "admin"
    if not asyncio.run(_promote(email, role)):
        typer.echo(f"No user registered with email {email}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"{email} is now {role}")


async def _load_issues() -> list:
    from backend.app.db import async_session, init_db
    from backend.app.models.issue import Issue

    await init_db()
    async with async_session() as session:
        result = await session.execute(select(Issue).order_by(Issue.created_at))
        return list(result.scalars().all())


@app.command()
def escalations() -> None:
    """Print areas that currently qualify for escalation."""
    from backend.app.config import settings
    from backend.app.services.escalation import find_escalations

    found = find_escalations(
        asyncio.run(_load_issues()),
        threshold=settings.escalation_threshold,
        min_recent=settings.escalation_min_recent,
        window_hours=settings.escalation_window_hours,
    )
    if not found:
        typer.echo("No escalations.")
        return
    for e in found:
        where = e.address or f"{e.latitude:.6f}, {e.longitude:.6f}"
        typer.echo(f"{e.count} recent report(s) near {where} [bucket {e.bucket}]")


if __name__ == "__main__":
    app()
