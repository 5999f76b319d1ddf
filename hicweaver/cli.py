#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Command-line interface for HiCWeaver.

This module provides the main CLI entry point and all subcommands for
HiCWeaver's automated Hi-C curation (AutoCut and AutoSort).
"""

import logging
from importlib import metadata
import sys
import click
from pathlib import Path
import yaml

from .version import __version__
from .config.parser import ConfigParser, ConfigValidationError, parse_override
from .config.schema import load_config, save_config_template, validate_config
from .curation_core.autocut_module import AutoCutParams, autocut
from .curation_core.autosort_module import AutoSortParams, autosort, autosort_core
from .curation_core.data_structures import AutoSortResult
from .curation_utils.scaffold_sort import scaffold_aware_sort
from .io_utils.contact_map_io import (
    infer_texture_size,
    load_contact_map,
    load_contig_order,
    load_contigs_tsv,
)
from .io_utils.result_export import (
    export_autocut_json,
    export_autocut_tsv,
    export_autosort_json,
    export_chains_tsv,
)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Settings outside the AutoSortParams fields
AUTOSORT_CLI_KEYS = ('per_scaffold',)


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
@click.pass_context
def main(ctx, verbose, quiet):
    """
    HiCWeaver: Automated Hi-C Contact Map Curation

    Detects misassembly breakpoints (AutoCut) and proposes chromosome-level
    contig order and orientation (AutoSort) from an overview Hi-C contact map.
    """
    ctx.ensure_object(dict)
    ctx.obj['VERBOSE'] = verbose
    ctx.obj['QUIET'] = quiet

    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)


# ============================================================================
# Shared helpers
# ============================================================================

def _fail(message):
    click.echo(f"✗ Error: {message}", err=True)
    sys.exit(1)


def _build_config(config_file, overrides):
    """Load YAML config, apply --set overrides and validate."""
    parser = ConfigParser(config_file)
    parser.merge_cli_overrides(dict(parse_override(expr) for expr in overrides))
    parser.validate()
    return parser


def _attach_log_file(parser, ctx):
    log_file = parser.get('output.logging.log_file')
    if log_file:
        handler = logging.FileHandler(log_file)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(handler)

    # Config level applies unless --verbose/--quiet was given
    level = parser.get('output.logging.level')
    if level and not (ctx.obj.get('VERBOSE') or ctx.obj.get('QUIET')):
        logging.getLogger().setLevel(str(level).upper())


def _load_inputs(contact_map, contigs_tsv, order_file, texture_size):
    matrix = load_contact_map(contact_map)
    contigs = load_contigs_tsv(contigs_tsv)
    order = load_contig_order(order_file, len(contigs))
    if texture_size is None:
        texture_size = infer_texture_size(contigs, order)
    return matrix, contigs, order, texture_size


def input_options(func):
    """Options shared by the curation commands."""
    options = [
        click.option('--contact-map', '-m', required=True, type=click.Path(exists=True),
                     help='Overview contact map (.npy or .npz)'),
        click.option('--contigs', '-c', 'contigs_tsv', required=True, type=click.Path(exists=True),
                     help='Contig table (TSV: name, length, pixel_start, pixel_end[, inverted][, scaffold_id])'),
        click.option('--order', 'order_file', type=click.Path(exists=True),
                     help='Contig display order, one index per line (default: table order)'),
        click.option('--texture-size', type=int, default=None,
                     help='Full-resolution pixel span (default: sum of contig pixel spans)'),
        click.option('--output', '-o', required=True, type=click.Path(),
                     help='Output file'),
        click.option('--format', '-f', 'output_format', type=click.Choice(['json', 'tsv']),
                     default=None, help='Output format (default: output.format from config)'),
        click.option('--config', 'config_file', type=click.Path(exists=True),
                     help='Configuration file (YAML)'),
        click.option('--set', 'overrides', multiple=True, metavar='KEY=VALUE',
                     help='Override a config value, e.g. --set autosort.hard_threshold=0.3'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


# ============================================================================
# Configuration Management Commands
# ============================================================================

@main.group()
def config():
    """Configuration management commands."""
    pass


@config.command('init')
@click.option('--output', '-o', type=click.Path(), default='hicweaver_config.yaml',
              help='Output configuration file path')
@click.option('--template', '-t',
              type=click.Choice(['default', 'sensitive', 'conservative']),
              default='default', help='Configuration template type')
def config_init(output, template):
    """Generate a template configuration file with all available parameters."""
    click.echo(f"Generating {template} configuration template: {output}")

    try:
        save_config_template(Path(output), template=template)
    except (OSError, ValueError) as e:
        _fail(f"creating configuration: {e}")

    click.echo(f"✓ Configuration file created: {output}")
    click.echo("\nThe configuration file includes:")
    click.echo("  • AutoCut breakpoint detection settings")
    click.echo("  • AutoSort link scoring and chaining settings")
    click.echo("  • Output format and logging")
    click.echo("\nEdit this file to customize curation.")


@config.command('validate')
@click.argument('config_file', type=click.Path(exists=True))
def config_validate(config_file):
    """Validate a configuration file."""
    click.echo(f"Validating configuration file: {config_file}")

    try:
        config = load_config(Path(config_file))
    except (yaml.YAMLError, ValueError) as e:
        _fail(f"invalid configuration {config_file}: {e}")

    errors = validate_config(config)
    if errors:
        click.echo("\n✗ Configuration validation failed:")
        for error in errors:
            click.echo(f"  • {error}", err=True)
        sys.exit(1)

    click.echo("✓ Configuration is valid")

    # Show key settings
    click.echo("\nKey Settings:")
    click.echo(f"  AutoCut cut threshold: {config['autocut']['cut_threshold']}")
    click.echo(f"  AutoSort hard threshold: {config['autosort']['hard_threshold']}")
    click.echo(f"  Output format: {config['output']['format']}")


@config.command('show')
@click.argument('config_file', type=click.Path(exists=True))
@click.option('--format', '-f', type=click.Choice(['yaml', 'summary']), default='summary',
              help='Output format')
def config_show(config_file, format):
    """Display configuration settings."""
    try:
        config = load_config(Path(config_file))
    except (yaml.YAMLError, ValueError) as e:
        _fail(f"invalid configuration {config_file}: {e}")

    if format == 'yaml':
        click.echo(yaml.dump(config, default_flow_style=False, sort_keys=False))
        return

    click.echo(f"Configuration from: {config_file}")
    click.echo("=" * 60)

    click.echo("\n✂ AutoCut:")
    for key, value in config['autocut'].items():
        click.echo(f"  {key}: {value}")

    click.echo("\n🧬 AutoSort:")
    for key, value in config['autosort'].items():
        click.echo(f"  {key}: {value}")

    click.echo("\n📁 Output:")
    click.echo(f"  Format: {config['output']['format']}")
    click.echo(f"  Log level: {config['output']['logging']['level']}")


# ============================================================================
# Curation Commands
# ============================================================================

@main.command('autocut')
@input_options
@click.pass_context
def autocut_cmd(ctx, contact_map, contigs_tsv, order_file, texture_size,
                output, output_format, config_file, overrides):
    """
    Detect misassembly breakpoints.

    Scans the near-diagonal signal of every contig for sustained drops and
    reports proposed cut positions in texture pixels.

    Examples:
        hicweaver autocut -m overview.npy -c contigs.tsv -o breakpoints.json
        hicweaver autocut -m overview.npy -c contigs.tsv -o bp.tsv -f tsv --set autocut.window_size=12
    """
    try:
        parser = _build_config(config_file, overrides)
        _attach_log_file(parser, ctx)
        matrix, contigs, order, texture_size = _load_inputs(
            contact_map, contigs_tsv, order_file, texture_size
        )
    except (FileNotFoundError, ValueError, ConfigValidationError) as e:
        _fail(e)

    params = AutoCutParams.from_dict(parser.get_autocut_config())
    result = autocut(matrix, contigs, order, texture_size, params)

    output_format = output_format or parser.get('output.format', 'json')
    try:
        if output_format == 'tsv':
            export_autocut_tsv(result, contigs, order, output)
        else:
            export_autocut_json(result, contigs, order, output, indent=parser.get('output.indent', 2))
    except (OSError, ValueError) as e:
        _fail(f"writing {output}: {e}")

    if not ctx.obj.get('QUIET'):
        click.echo(f"✓ AutoCut: {result.total_breakpoints} breakpoint(s) in "
                   f"{len(result.breakpoints)} contig(s)")
        click.echo(f"  Output: {output}")


@main.command('autosort')
@input_options
@click.option('--core', is_flag=True,
              help='Sort even small assemblies (skip the minimum contig count guard)')
@click.option('--per-scaffold/--whole-assembly', default=None,
              help='Sort each scaffold independently (default: autosort.per_scaffold from config)')
@click.option('--no-links', is_flag=True, help='Omit link scores from JSON output')
@click.pass_context
def autosort_cmd(ctx, contact_map, contigs_tsv, order_file, texture_size,
                 output, output_format, config_file, overrides, core, per_scaffold, no_links):
    """
    Propose contig order and orientation.

    Scores every contig pair in all four orientations, chains contigs with
    the strongest links and merges chains into chromosome-scale groups.

    Examples:
        hicweaver autosort -m overview.npy -c contigs.tsv -o chains.json
        hicweaver autosort -m overview.npy -c contigs.tsv -o chains.tsv -f tsv --core
        hicweaver autosort -m overview.npy -c contigs.tsv -o chains.json --per-scaffold
    """
    try:
        parser = _build_config(config_file, overrides)
        _attach_log_file(parser, ctx)
        matrix, contigs, order, texture_size = _load_inputs(
            contact_map, contigs_tsv, order_file, texture_size
        )
    except (FileNotFoundError, ValueError, ConfigValidationError) as e:
        _fail(e)

    section = parser.get_autosort_config()
    if per_scaffold is None:
        per_scaffold = bool(section.get('per_scaffold', False))
    params = AutoSortParams.from_dict(
        {k: v for k, v in section.items() if k not in AUTOSORT_CLI_KEYS}
    )

    output_format = output_format or parser.get('output.format', 'json')
    indent = parser.get('output.indent', 2)

    if per_scaffold:
        result = scaffold_aware_sort(matrix, contigs, order, texture_size, params)
        if result.global_result is not None:
            sort_result = result.global_result
            summary = (f"fewer than two scaffolds; {len(sort_result.chains)} chain(s) "
                       f"from {len(order)} contigs")
        else:
            chains = [chain for group in result.group_results.values() for chain in group.chains]
            sorted_indices = {entry.order_index for chain in chains for entry in chain}
            # Contigs of skipped groups are written as singletons
            chains.extend([entry] for entry in result.proposed_order
                          if entry.order_index not in sorted_indices)
            sort_result = AutoSortResult(chains=chains)
            summary = (f"{len(result.group_results)} scaffold group(s) sorted, "
                       f"{len(result.skipped_groups)} skipped")
    else:
        sorter = autosort_core if core else autosort
        result = sort_result = sorter(matrix, contigs, order, texture_size, params)
        summary = (f"{len(result.chains)} chain(s) from {len(order)} contigs, "
                   f"threshold {result.threshold:.3f}")

    try:
        if output_format == 'tsv':
            export_chains_tsv(sort_result, contigs, order, output)
        else:
            export_autosort_json(result, contigs, order, output,
                                 indent=indent, include_links=not no_links)
    except (OSError, ValueError) as e:
        _fail(f"writing {output}: {e}")

    if not ctx.obj.get('QUIET'):
        click.echo(f"✓ AutoSort: {summary}")
        click.echo(f"  Output: {output}")


# ============================================================================
# Utility Commands
# ============================================================================

@main.command()
def version():
    """Show version information."""
    click.echo(f"HiCWeaver v{__version__}")
    click.echo("\nDependencies:")

    for package, label in (("numpy", "NumPy"), ("PyYAML", "PyYAML"), ("click", "Click")):
        try:
            click.echo(f"  {label}: {metadata.version(package)}")
        except metadata.PackageNotFoundError:
            click.echo(f"  {label}: not installed")


if __name__ == '__main__':
    sys.exit(main())
