from typing import List, Optional
import argparse
import logging
import sys

from rich.console import Console
from rich.panel import Panel

from ..core.errors import BusyError, PrintError, ValidationError
from ..core.models import PrintRequest, SessionEvent, SessionStatus
from ..printing import (
    CommandEncoder,
    PillowDocumentRenderer,
    PrintSession,
    SocketTransport,
    generate_document,
)
from .config import Settings, load_config


console = Console()

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID = 2


def _prompt_input(prompt: str) -> str:
    try:
        return input(prompt)
    except EOFError:
        return ""


def _show_event(event: SessionEvent) -> None:
    status = event.state.status
    if status is SessionStatus.FAILED:
        console.print(f"[bold red]{event.message}[/bold red]")
    elif status is SessionStatus.COMPLETED:
        console.print(f"[bold green]{event.message}[/bold green]")
    else:
        console.print(f"[cyan]{event.message}[/cyan]")


def build_session(settings: Settings) -> PrintSession:
    return PrintSession(
        SocketTransport(write_timeout=settings.write_timeout),
        encoder=CommandEncoder(profile=settings.printer_profile or None),
        connect_timeout=settings.connect_timeout,
    )


def print_text(session: PrintSession, host: str, port: int, text: str) -> int:
    try:
        final = session.run(PrintRequest(host=host, text=text, port=port), listener=_show_event)
    except ValidationError as exc:
        console.print(f"[yellow]{exc.message}[/yellow]")
        return EXIT_INVALID
    except BusyError as exc:
        console.print(f"[yellow]{exc.message}[/yellow]")
        return EXIT_FAILED
    if final.status is SessionStatus.COMPLETED:
        console.print(Panel("Printed successfully", title="Printer Status", expand=False))
        return EXIT_OK
    return EXIT_FAILED


def save_pdf(settings: Settings, text: str, path: str) -> int:
    renderer = PillowDocumentRenderer(font_path=settings.font_path or None, font_size=settings.font_size)
    try:
        document = generate_document(text, renderer)
        target = document.save(path)
    except ValidationError as exc:
        console.print(f"[yellow]{exc.message}[/yellow]")
        return EXIT_INVALID
    except PrintError as exc:
        console.print(f"[bold red]{exc.message}[/bold red]")
        return EXIT_FAILED
    console.print(Panel(f"PDF generated successfully: {target} ({document.page_count} page(s))", expand=False))
    return EXIT_OK


def _build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Print text on a network receipt printer (raw port 9100).")
    parser.add_argument("--host", default=settings.printer_host, help="Printer IP address or hostname.")
    parser.add_argument("--port", type=int, default=settings.printer_port, help="Printer TCP port.")
    parser.add_argument("--text", help="Text to print. Prompts interactively when omitted.")
    parser.add_argument("--pdf", metavar="PATH", help="Render the text into a PDF at PATH instead of printing.")
    parser.add_argument("--connect-timeout", type=float, default=settings.connect_timeout)
    parser.add_argument("--write-timeout", type=float, default=settings.write_timeout)
    parser.add_argument("--web", action="store_true", help="Run the small web form instead of the CLI.")
    parser.add_argument("--web-host", default=settings.web_host, help=argparse.SUPPRESS)
    parser.add_argument("--web-port", type=int, default=settings.web_port, help=argparse.SUPPRESS)
    return parser


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, (level_name or "WARNING").upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def run(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the network receipt printer client."""
    settings = load_config()
    _configure_logging(settings.log_level)
    args = _build_parser(settings).parse_args(argv)
    settings.connect_timeout = args.connect_timeout
    settings.write_timeout = args.write_timeout
    settings.printer_host = args.host or ""
    settings.printer_port = args.port

    if args.web:
        from waitress import serve
        from .web_server import create_app

        app = create_app(settings)
        console.print(f"Starting server on {args.web_host}:{args.web_port}")
        serve(app, host=args.web_host, port=args.web_port)
        return EXIT_OK

    if args.pdf:
        text = args.text if args.text is not None else _prompt_input("Enter text for the PDF: ")
        return save_pdf(settings, text, args.pdf)

    session = build_session(settings)
    if args.text is not None:
        return print_text(session, settings.printer_host, settings.printer_port, args.text)

    host = settings.printer_host or _prompt_input("Printer IP address (e.g. 192.168.1.100): ").strip()
    result = EXIT_OK
    while True:
        text = _prompt_input("Enter text to print. Leave blank to quit: ")
        if not text.strip():
            console.print("Done.")
            break
        result = print_text(session, host, settings.printer_port, text)
    return result


if __name__ == "__main__":
    sys.exit(run())
