import argparse
import json
import os
import sys
import time
from typing import List
import uvicorn
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from romasub.config import settings
from romasub.errors import RomasubError
from romasub.models.transcript import TranscriptLine
from romasub.player.sync import PlaybackSynchronizer
from romasub.services.source_chain import build_source_chain
from romasub.services.transcript import TranscriptService
from romasub.utils.video_id import resolve_video_id

console = Console()

def format_time(seconds: float) -> str:
    m, s = divmod(int(seconds), 60)
    h, m = divmod(m, 60)
    if h > 0:
        return f"{h:02d}:{m:02d}:{s:02d}"
    return f"{m:02d}:{s:02d}"

def render_transcript(lines: List[TranscriptLine]):
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Time", style="cyan", width=15)
    table.add_column("Text", style="white")
    table.add_column("Romaji", style="green")
    table.add_column(settings.TARGET_LANGUAGE, style="yellow")
    for line in lines:
        table.add_row(f"{format_time(line.start)} - {format_time(line.end)}", line.text, line.romaji, line.translation)
    console.print(table)


class WallClockPlayer:
    """Stand-in player whose play time is driven by the wall clock."""

    def __init__(self, speed: float = 1.0):
        self.speed = speed
        self._offset = 0.0
        self._started_at = None

    def get_current_time(self) -> float:
        if self._started_at is None:
            return self._offset
        return self._offset + (time.monotonic() - self._started_at) * self.speed

    def seek(self, t: float):
        self._offset = t
        if self._started_at is not None:
            self._started_at = time.monotonic()

    def play(self):
        if self._started_at is None:
            self._started_at = time.monotonic()


class ConsoleTranscriptView:
    def __init__(self, lines: List[TranscriptLine]):
        self.lines = lines

    def activate(self, index: int):
        line = self.lines[index]
        console.print(f"[cyan]{format_time(line.start)}[/cyan] [bold]{line.text}[/bold]")
        if line.romaji:
            console.print(f"      [green]{line.romaji}[/green]")
        if line.translation:
            console.print(f"      [yellow]{line.translation}[/yellow]")

    def deactivate(self, index: int):
        pass


def cmd_transcript(args) -> int:
    if args.use_ytdlp:
        settings.USE_YTDLP = True
    service = TranscriptService(chain=build_source_chain(settings))
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True
    ) as progress:
        task = progress.add_task(description="Fetching transcript...", total=None)
        lines = service.build(args.url, skip_translate=args.skip_translate)
        progress.update(task, completed=True)
    console.print(f"[green]✔[/green] {len(lines)} segments")
    render_transcript(lines)

    if not args.no_save:
        output_dir = os.path.join(settings.OUTPUT_DIR, resolve_video_id(args.url))
        os.makedirs(output_dir, exist_ok=True)
        path = os.path.join(output_dir, "transcript.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump([line.model_dump(by_alias=True) for line in lines], f, ensure_ascii=False, indent=2)
        console.print(f"\n[blue]Saved output to {path}[/blue]")
    return 0

def cmd_serve(args) -> int:
    uvicorn.run("romasub.api.app:app", host=args.host or settings.HOST, port=args.port or settings.PORT)
    return 0

def cmd_follow(args) -> int:
    with open(args.file, "r", encoding="utf-8") as f:
        lines = [TranscriptLine.model_validate(item) for item in json.load(f)]
    if not lines:
        console.print("[red]Transcript is empty.[/red]")
        return 1
    if not 0 <= args.start_index < len(lines):
        console.print(f"[red]--start-index must be between 0 and {len(lines) - 1}.[/red]")
        return 1
    player = WallClockPlayer(speed=args.speed)
    sync = PlaybackSynchronizer(player, ConsoleTranscriptView(lines))
    sync.load(lines)
    sync.start()
    sync.seek(args.start_index)
    try:
        while player.get_current_time() < lines[-1].end:
            time.sleep(settings.SYNC_INTERVAL)
    except KeyboardInterrupt:
        pass
    finally:
        sync.stop()
    return 0

def main():
    parser = argparse.ArgumentParser(description="Video transcripts with romaji and translation")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("transcript", help="Fetch and enrich the transcript of a video")
    p.add_argument("url", help="Video URL or id")
    p.add_argument("--skip-translate", action="store_true", help="Do not translate lines")
    p.add_argument("--use-ytdlp", action="store_true", help="Enable the yt-dlp subtitle download source")
    p.add_argument("--no-save", action="store_true", help="Do not save output to file (default: saves to outputs/)")
    p.set_defaults(func=cmd_transcript)

    p = sub.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--host")
    p.add_argument("--port", type=int)
    p.set_defaults(func=cmd_serve)

    p = sub.add_parser("follow", help="Replay a saved transcript in real time")
    p.add_argument("file", help="transcript.json written by the transcript command")
    p.add_argument("--speed", type=float, default=1.0, help="Playback speed multiplier")
    p.add_argument("--start-index", type=int, default=0, help="Line to start playback from")
    p.set_defaults(func=cmd_follow)

    args = parser.parse_args()
    try:
        sys.exit(args.func(args))
    except RomasubError as e:
        console.print(f"[bold red]Error:[/bold red] {e.message}")
        if e.details and e.details != e.message:
            console.print(f"[dim]{e.details}[/dim]")
        sys.exit(1)

if __name__ == "__main__":
    main()
