import logging
from pathlib import Path
from typing import Optional

import typer

from geoar.core.clock import ManualClock
from geoar.core.projections import project_frame
from geoar.core.service import ScriptedPositioningService
from geoar.core.session import LocationSession
from geoar.core.transform import GeoTransform, distance_meters, project
from geoar.domain.schemas import GeoFix, GeoOrigin, SessionState
from geoar.errors import Result
from geoar.io import read_points_csv, read_track_csv
from geoar.models import ProjectionConfig, SessionConfig

app = typer.Typer(no_args_is_help=True)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")) -> None:
    """geoar: GPS fix acquisition and local-frame conversion tools."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _unwrap_or_exit(result: Result):
    if not result.is_ok:
        typer.echo(f"Error: {result.error}", err=True)
        raise typer.Exit(code=1)
    return result.value


def format_fix(fix: GeoFix) -> str:
    return f"Latitude: {fix.latitude} \nLongitude: {fix.longitude} \nAltitude: {fix.altitude}"


@app.command()
def version() -> None:
    """Print version."""
    typer.echo("geoar 0.1.0")


@app.command()
def distance(
    lat1: float = typer.Argument(..., help="Latitude of the first point (deg)"),
    lon1: float = typer.Argument(..., help="Longitude of the first point (deg)"),
    lat2: float = typer.Argument(..., help="Latitude of the second point (deg)"),
    lon2: float = typer.Argument(..., help="Longitude of the second point (deg)"),
) -> None:
    """Great-circle distance between two points, in metres."""
    d = _unwrap_or_exit(distance_meters(
        GeoFix(latitude=lat1, longitude=lon1), GeoFix(latitude=lat2, longitude=lon2)
    ))
    typer.echo(f"Distance: {d:.3f} m")


@app.command("project")
def project_point(
    lat: float = typer.Argument(..., help="Latitude (deg)"),
    lon: float = typer.Argument(..., help="Longitude (deg)"),
    alt: float = typer.Argument(0.0, help="Altitude (m)"),
    origin_lat: float = typer.Option(..., "--origin-lat", help="Origin latitude (deg)"),
    origin_lon: float = typer.Option(..., "--origin-lon", help="Origin longitude (deg)"),
    origin_alt: float = typer.Option(0.0, "--origin-alt", help="Origin altitude (m)"),
) -> None:
    """Convert a GPS position to local x (east), y (up), z (north) metres."""
    try:
        origin = GeoOrigin(latitude=origin_lat, longitude=origin_lon, altitude=origin_alt)
    except ValueError as e:
        typer.echo(f"Error: invalid origin: {e}", err=True)
        raise typer.Exit(code=1)
    pos = _unwrap_or_exit(project(origin, GeoFix(latitude=lat, longitude=lon, altitude=alt)))
    typer.echo(f"x={pos.x:.3f} y={pos.y:.3f} z={pos.z:.3f}")


@app.command("project-csv")
def project_csv(
    input_csv: Path = typer.Option(..., "--input", exists=True, readable=True, help="CSV with Point,Lat,Lon,h"),
    origin_lat: float = typer.Option(..., "--origin-lat", help="Origin latitude (deg)"),
    origin_lon: float = typer.Option(..., "--origin-lon", help="Origin longitude (deg)"),
    origin_alt: float = typer.Option(0.0, "--origin-alt", help="Origin altitude (m)"),
    method: str = typer.Option(ProjectionConfig().method, "--method", help="Projection: [equirectangular|tm]"),
    output_csv: Optional[Path] = typer.Option(None, "--output", help="Output CSV with X,Y,Z columns."),
) -> None:
    """Project every point of a CSV into the local frame."""
    config = ProjectionConfig(method=method)
    try:
        df = read_points_csv(input_csv)
        origin = GeoOrigin(latitude=origin_lat, longitude=origin_lon, altitude=origin_alt)
        result = project_frame(df, origin, config.method)
    except (ValueError, RuntimeError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    projected = _unwrap_or_exit(result)

    if output_csv:
        projected.to_csv(output_csv, index=False)
        typer.echo(f"Projected {len(projected)} points to: {output_csv}")
    else:
        typer.echo(projected.to_string(index=False))


@app.command()
def track(
    track_csv: Path = typer.Argument(..., exists=True, readable=True, help="CSV with status,Lat,Lon,h[,timestamp]"),
    max_wait: int = typer.Option(SessionConfig().max_wait, "--max-wait", help="Wait budget in polls."),
    disabled: bool = typer.Option(False, "--disabled", help="Simulate location services switched off."),
) -> None:
    """
    Replay a recorded track through a location session. The first fix becomes
    the saved reference; every later fix is reported with its distance and
    local position relative to it.
    """
    try:
        statuses, fixes = read_track_csv(track_csv)
        config = SessionConfig(max_wait=max_wait)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    service = ScriptedPositioningService(statuses=statuses, fixes=fixes, enabled=not disabled)
    session = LocationSession(service, config=config, clock=ManualClock())
    session.start()
    state = session.wait()

    if state is not SessionState.READY:
        typer.echo(session.failure().message)
        raise typer.Exit(code=1)

    saved: Optional[GeoFix] = None
    transform = GeoTransform()
    for _ in range(len(fixes)):
        fix = _unwrap_or_exit(session.latest_fix())
        typer.echo(format_fix(fix))
        if saved is None:
            try:
                transform.set_origin(GeoOrigin.from_fix(fix))
            except ValueError as e:
                typer.echo(f"Error: invalid reference fix: {e}", err=True)
                raise typer.Exit(code=1)
            saved = fix
            typer.echo("Saved reference point.")
            continue
        d = _unwrap_or_exit(transform.distance_meters(saved, fix))
        pos = _unwrap_or_exit(transform.project(fix))
        typer.echo(f"Distance to saved: {d:.2f} m")
        typer.echo(f"Local position: {pos}")


if __name__ == "__main__":
    app()
