"""Click CLI commands for CurtainBuilder."""

import asyncio
import logging

import click

from .boundaries import load_boundary_file
from .builder import CurtainBuilder
from .constants import (
    ANCHOR_POLICIES,
    MULTI_GEOMETRY_POLICIES,
    DEFAULT_SAMPLE_COUNT,
    DEFAULT_SAFETY_MARGIN,
    DEFAULT_DEEP_FALLBACK,
    DEFAULT_WALL_TOP_ALTITUDE,
    DEFAULT_WALL_DEPTH,
    DEFAULT_CURTAIN_COLOR,
)
from .curtain import export_curtains
from .elevation import GoogleElevationClient, StaticElevationOracle
from .models import CurtainSettings
from .sampling import sample_path

logger = logging.getLogger(__name__)


@click.group()
def cli():
    """CurtainBuilder CLI for draping boundary curtains over terrain."""
    pass


@cli.command()
@click.argument('boundary_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', default='curtains.glb',
              help='Output file (.glb, .stl or .ply)')
@click.option('--samples', default=DEFAULT_SAMPLE_COUNT, show_default=True,
              help='Elevation samples per boundary')
@click.option('--margin', default=DEFAULT_SAFETY_MARGIN, show_default=True,
              help='Metres pushed below the lowest sampled elevation')
@click.option('--fallback', default=DEFAULT_DEEP_FALLBACK, show_default=True,
              help='Base elevation when no terrain data is available')
@click.option('--wall-top', default=DEFAULT_WALL_TOP_ALTITUDE, show_default=True,
              help='Wall top, metres above the safe base')
@click.option('--wall-depth', default=DEFAULT_WALL_DEPTH, show_default=True,
              help='Wall height from top to bottom, metres')
@click.option('--anchor', type=click.Choice(ANCHOR_POLICIES), default='first',
              show_default=True, help='Local frame anchor')
@click.option('--multi-geometry', type=click.Choice(MULTI_GEOMETRY_POLICIES),
              default='all', show_default=True,
              help='Use all members of Multi* geometries, or only the first')
@click.option('--color', default=DEFAULT_CURTAIN_COLOR, show_default=True,
              help='Curtain colour (hex)')
@click.option('--api-key', envvar='GOOGLE_MAPS_API_KEY', default=None,
              help='Google Maps API key for elevation lookups')
@click.option('--elevation', type=float, default=None,
              help='Use this constant ground elevation instead of an API')
def build(boundary_file: str, output: str, samples: int, margin: float,
          fallback: float, wall_top: float, wall_depth: float, anchor: str,
          multi_geometry: str, color: str, api_key, elevation):
    """Build boundary curtains from a GeoJSON file."""
    try:
        settings = CurtainSettings(
            sample_count=samples, safety_margin=margin, deep_fallback=fallback,
            wall_top_altitude=wall_top, wall_depth=wall_depth, anchor=anchor,
            multi_geometry=multi_geometry, color=color,
        ).validate()
        features = load_boundary_file(boundary_file, multi_geometry=multi_geometry)
    except ValueError as e:
        raise click.ClickException(str(e))

    if elevation is not None:
        oracle = StaticElevationOracle(elevation)
    elif api_key:
        oracle = GoogleElevationClient(api_key)
    else:
        logger.warning("No API key or --elevation given; curtains use the deep fallback")
        oracle = None

    builder = CurtainBuilder(oracle, settings)
    asyncio.run(async_build(builder, features, output))


async def async_build(builder: CurtainBuilder, features, output: str):
    """Async helper function for building curtains."""
    try:
        results = await builder.build_all(features)

        click.echo(f"\n{'='*50}")
        click.echo(f"Built {len(results)} curtain(s):")
        for r in results:
            s = r.summary()
            click.echo(f"  {s['id']}: {s['vertices']} verts, {s['triangles']} tris, "
                       f"base={s['base_elevation']:.1f}m ({s['elevation_source']})")
        path = export_curtains(results, output, color=builder.settings.color)
        click.echo(f"\nWritten: {path}")
        click.echo(f"{'='*50}")
    except Exception as e:
        logger.error(f"Error building curtains: {e}")
        raise click.ClickException(str(e))


@cli.command()
@click.argument('boundary_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--samples', default=DEFAULT_SAMPLE_COUNT, show_default=True,
              help='Elevation query points to show per boundary')
@click.option('--multi-geometry', type=click.Choice(MULTI_GEOMETRY_POLICIES),
              default='all', show_default=True)
def paths(boundary_file: str, samples: int, multi_geometry: str):
    """List the boundary paths in a GeoJSON file and their query points."""
    try:
        features = load_boundary_file(boundary_file, multi_geometry=multi_geometry)
    except ValueError as e:
        raise click.ClickException(str(e))

    for feature in features:
        kind = 'closed' if feature.closed else 'open'
        click.echo(f"{feature.id}: {len(feature.path)} vertices ({kind})")
        for p in sample_path(feature.path, samples):
            click.echo(f"    {p.longitude:.6f}, {p.latitude:.6f}")
