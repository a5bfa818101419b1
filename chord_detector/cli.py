"""Command-line interface for Chord Detector.

Provides commands for:
- detect: Chord timeline of a recording, frame by frame
- note: Map frequencies to notes
- identify: Name the chord formed by spelled notes
- info: Show recording and analysis-band information
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="chord-detector",
    help="Real-time chord recognition from magnitude spectra",
    rich_markup_mode="markdown",
)
console = Console()


@dataclass
class StageTimings:
    """Wall-clock time spent in each stage of a command."""

    stages: Dict[str, float] = field(default_factory=dict)

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        started = time.perf_counter()
        try:
            yield
        finally:
            self.stages[name] = self.stages.get(name, 0.0) + time.perf_counter() - started

    @property
    def total_time(self) -> float:
        return sum(self.stages.values())

    def print_summary(self) -> None:
        table = Table(title="Timing Summary")
        table.add_column("Stage", style="cyan")
        table.add_column("Seconds", style="yellow", justify="right")
        for name, seconds in self.stages.items():
            table.add_row(name, f"{seconds:.3f}")
        table.add_row("[bold]total[/bold]", f"[bold]{self.total_time:.3f}[/bold]")
        console.print(table)

    def to_dict(self) -> Dict[str, Any]:
        return {"stages": dict(self.stages), "total_time": self.total_time}


def _load_audio(input_file: Path, sample_rate: int, normalize: bool = True):
    from .input import AudioLoader

    loader = AudioLoader(target_sr=sample_rate, normalize=normalize)
    try:
        audio, sr = loader.load(str(input_file))
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    return loader, audio, sr


@app.command()
def detect(
    input_file: Path = typer.Argument(..., help="Input audio file (WAV, MP3, FLAC, OGG)"),
    sample_rate: int = typer.Option(
        44100, "--sr", help="Analysis sample rate in Hz"
    ),
    fft_size: int = typer.Option(
        2048, "-n", "--fft-size", help="FFT size (spectra have fft_size / 2 bins)"
    ),
    hop_length: int = typer.Option(
        0, "--hop", help="Samples between frames. 0 = fft_size / 4"
    ),
    max_peaks: int = typer.Option(
        6, "-p", "--max-peaks", help="Maximum simultaneous notes per frame"
    ),
    silence_threshold: float = typer.Option(
        10.0, "--silence", help="Mean band level (0-255) treated as silence"
    ),
    harmonic_tolerance: float = typer.Option(
        0.03, "--harmonic-tolerance", help="Relative deviation accepted as an overtone"
    ),
    min_duration: float = typer.Option(
        0.1, "-m", "--min-duration", help="Drop chord segments shorter than this (seconds)"
    ),
    normalize: bool = typer.Option(
        True, "--normalize/--no-normalize", help="Peak-normalize the recording before analysis"
    ),
    history: bool = typer.Option(
        False, "--history", help="Also show the debounced chord change log"
    ),
    frame_log: bool = typer.Option(
        False, "--frames", help="Also show level, dominant frequency and chord per frame"
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Output results as JSON"
    ),
    verbose: bool = typer.Option(
        False, "-v", "--verbose", help="Verbose output"
    ),
):
    """Detect the chord timeline of a recording.

    Every frame is converted to a 0-255 analyser spectrum and passed through
    the same detector used for live input.

    Examples:
        chord-detector detect guitar.wav
        chord-detector detect guitar.wav --json --history
    """
    from .analysis import ByteSpectrumAnalyzer, PeakFinderConfig
    from .inference import EMPTY_RESULT, ChordDetector
    from .processing import ChordHistory, build_timeline

    timings = StageTimings()

    if not json_output:
        console.print(f"[blue]Loading audio:[/blue] {input_file}")
    with timings.stage("load"):
        loader, audio, sr = _load_audio(input_file, sample_rate, normalize)

    try:
        analyzer = ByteSpectrumAnalyzer(fft_size=fft_size, hop_length=hop_length or None)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    detector = ChordDetector(
        peak_config=PeakFinderConfig(
            max_peaks=max_peaks,
            silence_threshold=silence_threshold,
            harmonic_tolerance=harmonic_tolerance,
        )
    )
    chord_history = ChordHistory()

    if not json_output:
        console.print(f"  Duration: {loader.get_duration(audio, sr):.2f}s, Sample rate: {sr}Hz")
        console.print("[blue]Detecting chords...[/blue]")

    times: List[float] = []
    results = []
    log: List[Dict[str, Any]] = []
    active_frames = 0
    with timings.stage("detect"):
        for frame in analyzer.frames(audio, sr):
            # Inactive frames break the timeline and never reach the history
            if frame.active:
                active_frames += 1
                result = detector.detect_chord(frame.magnitudes, sr, fft_size)
                chord_history.record(result, frame.time)
            else:
                result = EMPTY_RESULT
            times.append(frame.time)
            results.append(result)
            if frame_log:
                log.append({
                    "time": frame.time,
                    "active": frame.active,
                    "rms": frame.rms,
                    "frequency": frame.frequency,
                    "chord": result.name,
                })

    segments = build_timeline(times, results, min_duration=min_duration)

    if json_output:
        data: Dict[str, Any] = {
            "file": str(input_file),
            "sample_rate": sr,
            "fft_size": fft_size,
            "frames": len(results),
            "active_frames": active_frames,
            "segments": [s.to_dict() for s in segments],
        }
        if history:
            data["history"] = [
                {"name": e.name, "time": e.time} for e in chord_history.entries
            ]
        if frame_log:
            data["frame_log"] = log
        if verbose:
            data["timings"] = timings.to_dict()
        console.print_json(data=data)
        return

    console.print(f"  Analysed {len(results)} frames ({active_frames} active)")
    if not segments:
        console.print("[yellow]No chords detected![/yellow]")
    else:
        _show_segments_table(segments)

    if history and chord_history.entries:
        _show_history_table(chord_history.entries)

    if frame_log:
        _show_frame_log(log)

    if verbose:
        timings.print_summary()


@app.command()
def note(
    frequencies: List[float] = typer.Argument(..., help="Frequencies in Hz"),
):
    """Map frequencies to the nearest equal-tempered notes.

    Examples:
        chord-detector note 440 261.63 330
    """
    from .core import closest_note

    table = Table(title="Closest Notes")
    table.add_column("Input (Hz)", style="cyan")
    table.add_column("Note", style="green")
    table.add_column("Tuned (Hz)", style="yellow")
    table.add_column("Cents", style="magenta")

    for frequency in frequencies:
        n = closest_note(frequency)
        if not n.is_known:
            table.add_row(f"{frequency:g}", n.name, "-", "-")
            continue
        table.add_row(
            f"{frequency:g}",
            f"{n.name}{n.octave}",
            f"{n.frequency:.2f}",
            f"{n.cents:+.1f}",
        )

    console.print(table)


@app.command()
def identify(
    notes: List[str] = typer.Argument(..., help="Notes such as C4 E4 G4"),
):
    """Name the chord formed by a set of notes.

    Examples:
        chord-detector identify C4 E4 G4
        chord-detector identify A3 C4 E4 G4
    """
    from .core import Note
    from .inference import ChordMatcher

    try:
        parsed = [Note.from_name(n) for n in notes]
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    match = ChordMatcher().identify(parsed)
    if not match.name:
        console.print("[yellow]No chord identified[/yellow]")
        return

    console.print(f"[green]{match.name}[/green]  ({match.formula})")
    if match.score is not None:
        console.print(f"  Score: {match.score:.5f}")


@app.command()
def info(
    input_file: Path = typer.Argument(..., help="Input audio file"),
    sample_rate: int = typer.Option(44100, "--sr", help="Analysis sample rate in Hz"),
    fft_size: int = typer.Option(2048, "-n", "--fft-size", help="FFT size"),
):
    """Show recording and analysis-band information."""
    from .analysis import PeakFinder

    loader, audio, sr = _load_audio(input_file, sample_rate)
    finder = PeakFinder()
    bin_size = sr / fft_size
    min_bin, max_bin = finder.band_bins(bin_size)

    console.print(f"\n[bold]Audio Info:[/bold] {input_file.name}")
    console.print(f"  Duration: {loader.get_duration(audio, sr):.2f} seconds")
    console.print(f"  Sample rate: {sr} Hz")
    console.print(f"  Samples: {audio.shape[-1]:,}")
    console.print(f"  Bin resolution: {bin_size:.2f} Hz")
    console.print(
        f"  Analysis band: bins {min_bin}-{max_bin} "
        f"({finder.config.min_frequency:g}-{finder.config.max_frequency:g} Hz)"
    )


def _show_segments_table(segments):
    """Display chord segments in a table."""
    table = Table(title="Detected Chords")
    table.add_column("Chord", style="cyan")
    table.add_column("Formula", style="green")
    table.add_column("Time", style="yellow")
    table.add_column("Frames", style="magenta")

    for segment in segments:
        table.add_row(
            segment.name,
            segment.formula,
            f"{segment.onset:.2f}-{segment.offset:.2f}s",
            str(segment.frames),
        )

    console.print(table)


def _show_history_table(entries):
    """Display the chord change log, newest first."""
    table = Table(title="Chord History")
    table.add_column("Chord", style="cyan")
    table.add_column("Time (s)", style="yellow")

    for entry in entries:
        table.add_row(entry.name, f"{entry.time:.2f}")

    console.print(table)


def _show_frame_log(log):
    """Display per-frame level, dominant frequency and chord."""
    table = Table(title="Frames")
    table.add_column("Time (s)", style="yellow")
    table.add_column("RMS", style="magenta")
    table.add_column("Dominant (Hz)", style="green")
    table.add_column("Chord", style="cyan")

    for entry in log:
        frequency = entry["frequency"]
        table.add_row(
            f"{entry['time']:.2f}",
            f"{entry['rms']:.4f}" if entry["active"] else "[dim]silent[/dim]",
            "-" if frequency is None else f"{frequency:.1f}",
            entry["chord"] or "-",
        )

    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
