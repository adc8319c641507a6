import argparse
import asyncio
from pathlib import Path
from typing import List

from rich.console import Console
from rich.markdown import Markdown

from notebook_chat.exception import NotebookChatException
from notebook_chat.llm import ChatMessage
from notebook_chat.models import FileSource, FolderSource, Source, TextSource
from notebook_chat.service import NotebookService

console = Console()

HELP = (
    "[dim]Commands: /show <name>  /reprocess <name>  /clear [name]  /sources  exit[/dim]"
)


def build_sources(paths: List[str], notes: List[str]) -> List[Source]:
    sources: List[Source] = []
    for raw in paths:
        p = Path(raw)
        if p.is_dir():
            sources.append(FolderSource.from_directory(p))
        elif p.is_file():
            sources.append(FileSource.from_path(p))
        else:
            console.print(f"[yellow]Skipping missing path: {raw}[/yellow]")
    for i, note in enumerate(notes, start=1):
        sources.append(TextSource(name=f"Text Snippet {i}", content=note))
    return sources


def find_source(sources: List[Source], name: str):
    return next((s for s in sources if s.name == name), None)


async def run(paths: List[str], notes: List[str]) -> None:
    # ===========================================================
    # INITIALIZE SERVICE + EXTRACT SOURCES
    # ===========================================================
    console.print("[bold cyan]Loading document cache...[/bold cyan]")
    service = await NotebookService.create()
    sources = build_sources(paths, notes)

    with console.status("Extracting sources..."):
        processed = await service.process_sources(sources)
    console.print(f"[green]Ready. {len(processed)} file(s) extracted, {len(sources)} source(s) active.[/green]")
    console.print(HELP + "\n")

    chat_history: List[ChatMessage] = []

    # ===========================================================
    # CHAT LOOP
    # ===========================================================
    while True:
        user_input = console.input("[bold magenta]You:[/bold magenta] ").strip()
        if not user_input:
            continue

        if user_input.lower() in ["exit", "quit", "bye"]:
            console.print("[yellow]Exiting chat. Goodbye![/yellow]")
            break

        if user_input.startswith("/"):
            command, _, arg = user_input.partition(" ")
            arg = arg.strip()
            if command == "/show":
                content = service.get_processed_document(arg)
                console.print(content if content is not None else "[red]Not processed yet[/red]")
            elif command == "/reprocess":
                source = find_source(sources, arg)
                if source is None:
                    console.print(f"[red]No source named {arg}[/red]")
                    continue
                with console.status(f"Analyzing {arg} again..."):
                    await service.reprocess(source)
                console.print(f"[green]{arg} has been reprocessed.[/green]")
            elif command == "/clear":
                await service.clear_cache(arg or None)
                console.print("[green]Cache cleared.[/green]")
            elif command == "/sources":
                for s in sources:
                    console.print(f"- {s.kind.value}: {s.name}")
            else:
                console.print(HELP)
            continue

        try:
            result = await service.chat(user_input, chat_history, sources)
        except NotebookChatException as e:
            console.print(f"[bold red]Error:[/bold red] {e.error_message}")
            continue

        console.print("\n[bold green]Assistant:[/bold green]")
        console.print(Markdown(result.answer or "`<no content>`"))
        if result.citations:
            console.print("\n[bold cyan]Cited:[/bold cyan] " + ", ".join(result.citations))

        chat_history.append(ChatMessage(role="user", content=user_input))
        chat_history.append(ChatMessage(role="assistant", content=result.answer))

        console.print("\n" + "-" * 60 + "\n")


def main() -> None:
    parser = argparse.ArgumentParser(description="Chat with your documents.")
    parser.add_argument("paths", nargs="*", help="Files or folders to add as sources")
    parser.add_argument("--text", action="append", default=[], help="Pasted text snippet")
    args = parser.parse_args()
    asyncio.run(run(args.paths, args.text))


if __name__ == "__main__":
    main()
