"""Interactive CLI application."""
import asyncio
import json
import logging
from datetime import date
from functools import partial
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from hana_vocab.config import Config
from hana_vocab.db import init_db
from hana_vocab.engine import QuizEngine
from hana_vocab.models import LEVELS, POS_LABELS
from hana_vocab.pad import parse_strokes
from hana_vocab.progress import get_daily_count, get_progress, get_streak, record_outcome
from hana_vocab.recognizer import GeminiRecognizer, NullRecognizer
from hana_vocab.session import start_session
from hana_vocab.settings import get_settings, update_settings
from hana_vocab.speech import EdgeSpeaker
from hana_vocab.stats import build_homonym_map, display_form, get_mastery_stats
from hana_vocab.vocab import add_custom_word, filter_vocab, get_all_vocab

console = Console()
logger = logging.getLogger(__name__)

LIBRARY_PAGE_SIZE = 30


class SessionExitRequested(Exception):
    """Raised when the learner leaves a session mid-way."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in ("q", "menu"):
        raise SessionExitRequested()
    return answer


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def show_welcome():
    console.print(Panel(
        "[bold]Hana Korean[/bold]\n[dim]하나 · vocabulary practice[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("flashcards", "Swipe-style flashcards"),
        ("endless", "Listening, dictation and handwriting quiz"),
        ("stats", "Mastery breakdown and today's practice"),
        ("library", "Search the vocabulary"),
        ("add", "Add your own word"),
        ("settings", "Input mode and language"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def load_strokes_file(path: str):
    return parse_strokes(json.loads(Path(path).read_text(encoding="utf-8")))


async def run_flashcard_session(engine: QuizEngine) -> None:
    await engine.start()
    while engine.current_question is not None:
        # The keyboard prompt blocks the loop, so play pending audio first.
        await engine.wait_for_speech()
        q = engine.current_question
        n, total = engine.position
        side = q.answer if engine.is_flipped else q.prompt
        console.print(Panel(
            f"[bold]{side}[/bold]",
            title=f"Card {n}/{total}",
            border_style="green" if engine.is_flipped else "cyan",
        ))
        action = session_prompt(
            "[dim]Enter to flip, y = knew it, n = didn't[/dim]", default="", show_default=False,
        ).strip().lower()
        if action == "":
            engine.pointer_down(0, 0)
            await engine.pointer_up(0, 0)
        elif action in ("y", "n"):
            dx = 100 if action == "y" else -100
            engine.pointer_down(0, 0)
            engine.pointer_move(dx, 0)
            await engine.pointer_up(dx, 0)
        else:
            console.print("[red]Unknown key.[/red]")


def show_correction(engine: QuizEngine) -> None:
    c = engine.correction()
    if c is None:
        return
    body = (
        f"[bold]{c.korean}[/bold]  [magenta]{c.pos_label}[/magenta]\n"
        f"[dim]{c.romanization}[/dim]\n\n{c.meaning}"
    )
    if c.recognized is not None:
        body += f"\n\n[red]Read as:[/red] {c.recognized or '(nothing)'}"
    console.print(Panel(body, title="Correction", border_style="red"))


async def _ask_endless(engine: QuizEngine):
    await engine.wait_for_speech()
    q = engine.current_question
    if q.type == "audio_mc":
        for i, opt in enumerate(q.options, 1):
            console.print(f"  [cyan]{i})[/cyan] {opt}")
        choices = [str(i) for i in range(1, len(q.options) + 1)] + ["r", "q"]
        choice = session_prompt("\nWhich meaning did you hear? (r = replay)", choices=choices)
        if choice == "r":
            await engine.replay_audio()
            return None
        return await engine.select_option(q.options[int(choice) - 1])
    if q.type == "dictation":
        console.print(f"[bold]{q.prompt}[/bold]")
        return await engine.submit_dictation(session_prompt("Write it in Korean"))
    console.print(f"[bold]{q.prompt}[/bold]")
    path = session_prompt("Strokes file (JSON)")
    try:
        strokes = load_strokes_file(path)
    except (OSError, ValueError, KeyError, TypeError) as e:
        console.print(f"[red]Could not read strokes: {e}[/red]")
        return None
    engine.clear_pad()
    for stroke in strokes:
        engine.pad.add_stroke(stroke)
    if not engine.can_submit_handwriting:
        console.print("[yellow]Nothing drawn.[/yellow]")
        return None
    console.print("[dim]Analyzing...[/dim]")
    return await engine.submit_handwriting()


async def run_endless_session(engine: QuizEngine) -> tuple[int, int]:
    await engine.start()
    correct = answered = 0
    while engine.current_question is not None:
        n, total = engine.position
        console.print(f"\n[bold]Q{n}/{total}[/bold]")
        result = await _ask_endless(engine)
        if result is None:
            continue
        answered += 1
        if result:
            correct += 1
            console.print("[green]Correct![/green]")
        else:
            show_correction(engine)
            session_prompt("[dim]Press Enter to continue[/dim]", default="", show_default=False)
            await engine.continue_()
    if answered:
        console.print(f"[bold]Score: {correct}/{answered}[/bold]\n")
    return correct, answered


async def _drive(engine: QuizEngine, runner) -> None:
    try:
        await runner(engine)
    finally:
        await engine.recognizer.close()


def play_session(db_path: str, config: Config, mode: str) -> None:
    vocab = get_all_vocab(db_path)
    if not vocab:
        console.print("[yellow]No vocabulary available![/yellow]")
        return
    settings = get_settings(db_path)
    session = start_session(mode, vocab, settings)
    recognizer = GeminiRecognizer(config) if config.gemini_api_key else NullRecognizer()
    engine = QuizEngine(
        session,
        settings,
        on_outcome=partial(record_outcome, db_path),
        speaker=EdgeSpeaker(config),
        recognizer=recognizer,
        on_complete=lambda: console.print("[green]Session complete![/green]"),
    )
    runner = run_flashcard_session if mode == "flashcard" else run_endless_session
    console.print(f"\n[bold]{mode.title()}[/bold] · {len(session.questions)} items  [dim](q to leave)[/dim]\n")
    try:
        asyncio.run(_drive(engine, runner))
    except SessionExitRequested:
        engine.close()
        console.print("[dim]Session closed.[/dim]")


def cmd_stats(db_path: str):
    vocab = get_all_vocab(db_path)
    stats = get_mastery_stats(vocab, get_progress(db_path))
    console.print(Panel(
        f"[bold]{stats['mastered_pct']}%[/bold] mastered of {stats['total']} words",
        title="Mastery", border_style="blue",
    ))
    table = Table()
    table.add_column("Level")
    table.add_column("Words", justify="right")
    for label, key, color in [
        ("Mastered", "mastered", "green"),
        ("Proficient", "proficient", "cyan"),
        ("Learning", "learning", "blue"),
        ("Unseen", "unseen", "dim"),
    ]:
        table.add_row(f"[{color}]{label}[/{color}]", str(stats[key]))
    console.print(table)

    today = date.today().isoformat()
    console.print(f"\n  Practiced today: [bold]{get_daily_count(db_path, today)}[/bold]  |  "
                  f"Active days: [bold]{len(get_streak(db_path))}[/bold]")


def cmd_library(db_path: str):
    query = Prompt.ask("Search", default="", show_default=False)
    pos = Prompt.ask("Part of speech", choices=["all", *POS_LABELS], default="all")
    level = Prompt.ask("Level", choices=["all", *LEVELS], default="all")
    sort_key = Prompt.ask("Sort by", choices=["frequency", "mastery"], default="frequency")
    order = Prompt.ask("Order", choices=["asc", "desc"], default="asc")

    vocab = get_all_vocab(db_path)
    progress = get_progress(db_path)
    homonyms = build_homonym_map(vocab)
    language = get_settings(db_path).language
    items = filter_vocab(vocab, query, pos, level, sort_key, order, progress)

    table = Table(title=f"Library ({len(items)} words)")
    table.add_column("Word", style="bold")
    table.add_column("Romanization", style="dim")
    table.add_column("Meaning")
    table.add_column("POS")
    table.add_column("Level", justify="center")
    table.add_column("Mastery")
    for item in items[:LIBRARY_PAGE_SIZE]:
        mastery = progress[item.id].mastery if item.id in progress else 0
        en_label, zh_label = POS_LABELS.get(item.pos, (item.pos, item.pos))
        table.add_row(
            display_form(item, homonyms),
            item.romanization or "",
            item.localized_meaning(language),
            en_label if language == "en" else zh_label,
            item.level,
            f"[green]{'●' * mastery}[/green][dim]{'○' * (5 - mastery)}[/dim]",
        )
    console.print(table)
    if len(items) > LIBRARY_PAGE_SIZE:
        console.print(f"[dim]...and {len(items) - LIBRARY_PAGE_SIZE} more. Narrow the search to see them.[/dim]")


def cmd_add(db_path: str):
    korean = Prompt.ask("Korean")
    meaning = Prompt.ask("Meaning (中文)")
    meaning_en = Prompt.ask("Meaning (English)")
    romanization = Prompt.ask("Romanization", default="", show_default=False)
    pos = Prompt.ask("Part of speech", choices=list(POS_LABELS), default="명")
    level = Prompt.ask("Level", choices=list(LEVELS), default="A")
    item = add_custom_word(db_path, korean, meaning, meaning_en, pos, level, romanization)
    console.print(f"[green]Added {item.korean} ({item.meaning_en})[/green]")


def cmd_settings(db_path: str):
    current = get_settings(db_path)
    console.print(f"  Input mode: [cyan]{current.input_mode}[/cyan]  |  Language: [cyan]{current.language}[/cyan]")
    input_mode = Prompt.ask("Input mode", choices=["handwriting", "typing"], default=current.input_mode)
    language = Prompt.ask("Language", choices=["zh", "en"], default=current.language)
    update_settings(db_path, input_mode=input_mode, language=language)
    console.print("[green]Settings saved.[/green]")


def main():
    config = Config()
    configure_logging(config.log_level)
    db_path = config.db_path
    init_db(db_path)

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="flashcards").strip().lower()
        try:
            if choice == "flashcards":
                play_session(db_path, config, "flashcard")
            elif choice == "endless":
                play_session(db_path, config, "endless")
            elif choice == "stats":
                cmd_stats(db_path)
            elif choice == "library":
                cmd_library(db_path)
            elif choice == "add":
                cmd_add(db_path)
            elif choice == "settings":
                cmd_settings(db_path)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]화이팅![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.debug("Command %r failed", choice, exc_info=True)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
