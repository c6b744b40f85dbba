"""CLI interface for mixport."""

import json
import logging
from pathlib import Path

import typer

from .domain.errors import ExportError
from .domain.models import JobStatus, ProjectMetadata, RenderSettings
from .interfaces.bootstrap import to_payload
from .interfaces.cli_handlers import analyze_file, batch_export_directory, export_file, list_profiles, resolve_config
from .mastering_options import LimiterStyle

app = typer.Typer(help="mixport multi-platform export command line interface")

_CONFIG_OPTION = typer.Option(None, "--config", "-c", help="Engine config file (JSON or YAML).")
_PROFILES_OPTION = typer.Option(None, "--profiles", help="Custom profile catalog (JSON or YAML).")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine events to stderr."),
) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.command("profiles")
def profiles_command(
    config: Path | None = _CONFIG_OPTION,
    profiles: Path | None = _PROFILES_OPTION,
) -> None:
    """List the export profiles in the catalog."""

    engine_config = resolve_config(config, profiles_path=profiles)
    for profile in list_profiles(engine_config):
        spec = profile.audio_spec
        delivery = f"{spec.bitrate_kbps} kbps" if spec.bitrate_kbps else f"{spec.bit_depth}-bit"
        typer.echo(
            f"{profile.id}\t{profile.name}\t{spec.format.value} {spec.sample_rate_hz} Hz {delivery}\t"
            f"{spec.loudness_target_lufs:g} LUFS / {spec.peak_limit_db:g} dBFS"
        )


def _echo_job(snapshot, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps(to_payload(snapshot), indent=2))
        return
    for output in snapshot.outputs:
        typer.echo(
            f"[OK] {output.profile_id} -> {output.artifact_path} "
            f"({output.file_size_bytes} bytes, {output.quality.lufs:.1f} LUFS, peak {output.quality.peak_db:.2f} dBFS)"
        )
        for warning in output.metadata_warnings:
            typer.echo(f"  warning: {warning}")
    for failure in snapshot.failures:
        typer.echo(f"[FAILED] {failure.profile_id} stage={failure.stage} code={failure.code} {failure.message}")
    if snapshot.error is not None:
        typer.echo(f"Job {snapshot.job_id} failed: {snapshot.error.code}: {snapshot.error.message}")
    typer.echo(f"Job {snapshot.job_id}: {snapshot.status.value} ({snapshot.progress:.0f}%)")


@app.command("export")
def export_command(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Finished mix to export."),
    profile_ids: list[str] = typer.Option(..., "--profile", "-p", help="Profile id; repeat for several."),
    output_dir: Path = typer.Option(Path("."), "--output-dir", "-o", help="Directory receiving exports/."),
    title: str = typer.Option("", "--title"),
    artist: str = typer.Option("", "--artist"),
    album: str | None = typer.Option(None, "--album"),
    genre: str | None = typer.Option(None, "--genre"),
    isrc: str | None = typer.Option(None, "--isrc"),
    artwork: str | None = typer.Option(None, "--artwork", help="Artwork reference stored with the metadata."),
    fade_in: float = typer.Option(0.0, "--fade-in", min=0.0, help="Fade-in seconds."),
    fade_out: float = typer.Option(0.0, "--fade-out", min=0.0, help="Fade-out seconds."),
    normalize: bool = typer.Option(False, "--normalize/--no-normalize"),
    dither: bool = typer.Option(False, "--dither/--no-dither"),
    limiter_style: LimiterStyle = typer.Option(LimiterStyle.TRANSPARENT, "--limiter-style", case_sensitive=False),
    timeout: float | None = typer.Option(None, "--timeout", min=0.0, help="Seconds to wait for the job."),
    config: Path | None = _CONFIG_OPTION,
    profiles: Path | None = _PROFILES_OPTION,
    as_json: bool = typer.Option(False, "--json", help="Print the job snapshot as JSON."),
) -> None:
    """Export a local audio file to one or more platform profiles."""

    engine_config = resolve_config(config, profiles_path=profiles)
    metadata = ProjectMetadata(title=title, artist=artist, album=album, genre=genre, isrc=isrc, artwork=artwork)
    settings = RenderSettings(
        fade_in_seconds=fade_in,
        fade_out_seconds=fade_out,
        normalize=normalize,
        dithering=dither,
        limiter_style=limiter_style,
    )
    try:
        snapshot = export_file(
            source,
            profile_ids,
            config=engine_config,
            output_dir=output_dir,
            metadata=metadata,
            settings=settings,
            timeout_seconds=timeout,
        )
    except ExportError as error:
        typer.echo(f"{error.code}: {error.message}", err=True)
        raise typer.Exit(code=2) from error

    _echo_job(snapshot, as_json)
    if snapshot.status is not JobStatus.COMPLETED:
        raise typer.Exit(code=1)


@app.command("batch-export")
def batch_export_command(
    project_root: Path = typer.Option(..., "--project-root", exists=True, file_okay=False),
    project_ids: list[str] = typer.Option(..., "--project", help="Project id (file stem); repeat for several."),
    profile_ids: list[str] = typer.Option(..., "--profile", "-p", help="Profile id; repeat for several."),
    output_dir: Path = typer.Option(Path("."), "--output-dir", "-o"),
    concurrency_limit: int | None = typer.Option(None, "--concurrency-limit", min=1),
    timeout: float | None = typer.Option(None, "--timeout", min=0.0),
    config: Path | None = _CONFIG_OPTION,
    profiles: Path | None = _PROFILES_OPTION,
) -> None:
    """Export several projects from a directory with bulk metadata."""

    engine_config = resolve_config(config, profiles_path=profiles, max_concurrent_jobs=concurrency_limit)
    try:
        snapshots = batch_export_directory(
            project_root,
            project_ids,
            profile_ids,
            config=engine_config,
            output_dir=output_dir,
            timeout_seconds=timeout,
        )
    except ExportError as error:
        typer.echo(f"{error.code}: {error.message}", err=True)
        raise typer.Exit(code=2) from error

    for snapshot in snapshots:
        typer.echo(
            f"[{snapshot.status.value.upper()}] project={snapshot.project_id} job={snapshot.job_id} "
            f"outputs={len(snapshot.outputs)} failures={len(snapshot.failures)}"
        )
    completed = sum(1 for snapshot in snapshots if snapshot.status is JobStatus.COMPLETED)
    typer.echo(f"Summary: total={len(snapshots)} completed={completed} failed={len(snapshots) - completed}")
    if completed != len(snapshots):
        raise typer.Exit(code=1)


@app.command("analyze")
def analyze_command(
    source: Path = typer.Argument(..., exists=True, dir_okay=False),
    profile_id: str = typer.Option("spotify_hq", "--profile", "-p"),
    config: Path | None = _CONFIG_OPTION,
    profiles: Path | None = _PROFILES_OPTION,
    as_json: bool = typer.Option(False, "--json"),
) -> None:
    """Score a file against a profile's loudness and dynamics targets."""

    engine_config = resolve_config(config, profiles_path=profiles)
    try:
        report = analyze_file(source, profile_id, config=engine_config)
    except ExportError as error:
        typer.echo(f"{error.code}: {error.message}", err=True)
        raise typer.Exit(code=2) from error

    if as_json:
        typer.echo(json.dumps(to_payload(report), indent=2))
        return
    metrics = report.metrics
    typer.echo(f"Loudness: {metrics.lufs:.1f} LUFS")
    typer.echo(f"Peak: {metrics.peak_db:.2f} dBFS")
    typer.echo(f"Dynamic range: {metrics.dynamic_range_db:.1f} dB")
    typer.echo(f"Stereo width: {metrics.stereo_width:.2f} (phase {'ok' if metrics.phase_ok else 'problem'})")
    for recommendation in report.recommendations:
        typer.echo(f"- {recommendation}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
