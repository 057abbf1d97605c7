"""Command-line chat interface for Alfreyaa."""

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import typer

from .config import settings
from .exceptions import LLMProviderError, SessionBusyError
from .models import ImageResult, ResultEvent
from .observability import setup_structured_logging
from .providers import build_gateway
from .session import SessionController, create_session
from .transcript import ChatMessage, MessageType, TranscriptStore, message_from_event, user_message
from .utils import save_image_result

app = typer.Typer(help="Alfreyaa: a conversational assistant with search, images, website analysis and self-deployment")

EXIT_WORDS = frozenset({"exit", "quit", ":q"})


def format_message(message: ChatMessage) -> str:
    """Render one transcript turn as plain text."""
    speaker = "You" if message.sender.value == "user" else "Alfreyaa"
    lines = [f"{speaker}: {message.text}"]

    match message.type:
        case MessageType.GROUNDED_TEXT if message.sources:
            lines.append("Sources:")
            lines.extend(f"  - {s.title} <{s.uri}>" for s in message.sources)
        case MessageType.WEBSITE_ANALYSIS if message.analyzed_url:
            lines.append(f"(analyzed {message.analyzed_url})")
        case MessageType.CODE_MODIFICATION if message.code_modification and message.code_modification.changes:
            lines.append("Proposed changes:")
            lines.extend(f"  - {c.file}: {c.reason}" for c in message.code_modification.changes)
        case MessageType.DEPLOYMENT:
            status = message.deployment_status.value if message.deployment_status else "unknown"
            lines[0] = f"{speaker} [{status}]: {message.text}"
            if message.deployment_url:
                lines.append(f"Live at {message.deployment_url}")
        case MessageType.ERROR:
            lines[0] = f"{speaker} (error): {message.text}"
    return "\n".join(lines)


@asynccontextmanager
async def _open_session() -> AsyncIterator[SessionController]:
    gateway = build_gateway(settings)
    async with httpx.AsyncClient(timeout=settings.web.timeout, follow_redirects=True) as client:
        yield create_session(settings, gateway, client)


async def _handle_command(session: SessionController, store: TranscriptStore, command: str) -> None:
    await store.append(user_message(f"{int(time.time() * 1000)}-user", command))

    try:
        async for event in session.submit(command):
            message = message_from_event(event)
            if isinstance(event, ResultEvent) and isinstance(event.result, ImageResult):
                try:
                    path = save_image_result(event.result.image_url)
                    message.text = f"{message.text} (saved to {path})"
                except (ValueError, OSError) as e:
                    message.text = f"{message.text} (could not save image: {e})"
            await store.upsert(message)
            print(format_message(message))
    except SessionBusyError as e:
        print(f"Error: {e}")


async def _run_commands(commands: AsyncIterator[str]) -> None:
    store = TranscriptStore(settings.get_history_db())
    try:
        async with _open_session() as session:
            async for command in commands:
                await _handle_command(session, store, command)
    except LLMProviderError as e:
        print(f"Error: {e}")
        raise typer.Exit(code=1) from e


async def _single(command: str) -> AsyncIterator[str]:
    yield command


async def _prompt_loop() -> AsyncIterator[str]:
    while True:
        try:
            line = await asyncio.to_thread(input, "> ")
        except EOFError:
            return
        command = line.strip()
        if not command:
            continue
        if command.lower() in EXIT_WORDS:
            return
        yield command


@app.command()
def ask(command: str = typer.Argument(..., help="Command to send to Alfreyaa")) -> None:
    """Send a single command and print the reply."""
    setup_structured_logging(settings.session.logging_level)
    asyncio.run(_run_commands(_single(command)))


@app.command()
def chat() -> None:
    """Start an interactive chat session (type 'exit' to leave)."""
    setup_structured_logging(settings.session.logging_level)
    print("Alfreyaa is listening. Type 'exit' to leave.")
    asyncio.run(_run_commands(_prompt_loop()))


@app.command()
def history(limit: int = typer.Option(None, "--limit", "-n", help="Show only the latest N turns")) -> None:
    """Show the saved chat transcript."""

    async def _history() -> list[ChatMessage]:
        return await TranscriptStore(settings.get_history_db()).list_messages(limit=limit)

    for message in asyncio.run(_history()):
        print(format_message(message))


@app.command("clear-history")
def clear_history(yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation")) -> None:
    """Delete the saved chat transcript."""
    if not yes and not typer.confirm("Are you sure you want to clear the entire chat history? This action cannot be undone."):
        raise typer.Abort()

    deleted = asyncio.run(TranscriptStore(settings.get_history_db()).clear())
    print(f"Cleared {deleted} messages.")


@app.command()
def config() -> None:
    """Show current configuration."""
    print(f"Provider: {settings.llm.provider}")
    print(f"Model: {settings.llm.model_name}")
    print(f"Search model: {settings.genai.search_model}")
    print(f"Image model: {settings.genai.image_model}")
    print(f"Google API key: {'set' if settings.genai.get_api_key() else '(none)'}")
    print(f"GitHub token: {'set' if settings.deploy.get_github_token() else '(none)'}")
    print(f"Netlify token: {'set' if settings.deploy.get_netlify_token() else '(none)'}")
    print(f"Project root: {settings.project.get_root()}")
    print(f"History: {settings.get_history_db()}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
