"""
Command Line Interface for accel-ci.
"""
import json
import click
from ..MANAGERS.environment_manager import EnvironmentManager
from ..PARSERS.matrix_parser import MatrixParser, override
from ..MATRIX.expansion import TargetMatrix
from ..BUILDERS.container_engine import ContainerEngine
from ..BUILDERS.image_builder import MatrixImageBuilder
from ..PROVISIONERS.toolchain_provisioner import RustupBackend, ToolchainProvisioner
from ..RUNNERS.process_runner import CommandRunner, DryRunRunner
from ..MODELS.toolchain import DEFAULT_CHANNEL, ToolchainSpec
from ..errors import ConfigError, MatrixBuildError, ProvisionError

@click.group()
@click.option('--env-file', 'env_files', multiple=True, default=['.env'],
              help='.env file to read before the process environment (repeatable)')
@click.pass_context
def cli(ctx, env_files):
    """
    accel-ci - toolchain provisioning and CI image matrix builds.
    """
    ctx.ensure_object(dict)
    ctx.obj['env'] = EnvironmentManager().get_merged_environment(list(env_files))

@cli.command()
@click.argument('channel', required=False)
@click.option('--component', default='rustfmt', show_default=True, help='Component added to the channel')
@click.option('--target', default='nvptx64-nvidia-cuda', show_default=True, help='Compilation target added to the channel')
@click.option('--tool', default='ptx-linker', show_default=True, help='Linker helper installed with cargo')
@click.option('--dry-run', is_flag=True, help='Print commands without running them')
@click.pass_context
def provision(ctx, channel, component, target, tool, dry_run):
    """Install a nightly channel with rustfmt, the nvptx target and ptx-linker.

    CHANNEL defaults to $NIGHTLY, then to nightly-2020-09-20.
    """
    env = ctx.obj['env']
    channel = channel or env.get('NIGHTLY') or DEFAULT_CHANNEL
    runner = DryRunRunner() if dry_run else CommandRunner(env=env)
    spec = ToolchainSpec(channel=channel, component=component, target=target, linker_tool=tool)

    try:
        ToolchainProvisioner(RustupBackend(runner), spec).provision()
    except ProvisionError as e:
        raise click.ClickException(str(e))
    click.echo(f"Toolchain {channel} provisioned.")

@cli.group('build-matrix', invoke_without_command=True)
@click.option('--matrix', '-m', 'matrix_file', type=click.Path(dir_okay=False), help='Matrix YAML file')
@click.option('--directory', '-C', default='.', type=click.Path(file_okay=False),
              help='Directory holding the templates and rendered Dockerfiles')
@click.option('--registry', help='Registry root images are pushed under [$CI_REGISTRY_IMAGE]')
@click.option('--tag', help='Tag for every image of this run [$CI_COMMIT_REF_SLUG]')
@click.option('--cuda-version', 'cuda_versions', multiple=True, help='CUDA version (repeatable) [$CUDA_VERSIONS]')
@click.option('--nightly-version', 'nightly_versions', multiple=True, help='Nightly date (repeatable) [$NIGHTLY_VERSIONS]')
@click.option('--engine', help='Container engine binary [$CONTAINER_ENGINE]')
@click.option('--only', 'only', multiple=True, metavar='TARGET', help='Build only this target (repeatable)')
@click.option('--push/--no-push', default=True, help='Push images after building')
@click.option('--push-attempts', default=1, show_default=True, type=click.IntRange(min=1), help='Attempts per push')
@click.option('--jobs', '-j', default=1, show_default=True, type=click.IntRange(min=0), help='Parallel targets, 0 for one per CPU')
@click.option('--dry-run', is_flag=True, help='Render files and print commands without running them')
@click.pass_context
def build_matrix(ctx, matrix_file, directory, registry, tag, cuda_versions, nightly_versions,
                 engine, only, push, push_attempts, jobs, dry_run):
    """Build and push one image per distribution, CUDA version and nightly."""
    if ctx.invoked_subcommand == 'clean':
        # clean only needs the directory, a broken matrix must not block it
        ctx.obj['builder'] = MatrixImageBuilder(base_dir=directory)
        return

    env = ctx.obj['env']
    try:
        config = MatrixParser(env).load(matrix_file)
        update = {k: v for k, v in (('registry', registry), ('tag', tag), ('engine', engine)) if v}
        axes_update = {}
        if cuda_versions:
            axes_update['library_versions'] = list(cuda_versions)
        if nightly_versions:
            axes_update['channel_versions'] = list(nightly_versions)
        config = override(config, update, axes_update)
        matrix = TargetMatrix(config.axes)
        targets = matrix.select(only) if only else list(matrix)
    except ConfigError as e:
        raise click.UsageError(str(e), ctx=ctx)

    runner = DryRunRunner() if dry_run else CommandRunner(env=env)
    container_engine = ContainerEngine(runner, executable=config.engine, push_attempts=push_attempts)
    ctx.obj['config'] = config
    ctx.obj['targets'] = targets
    ctx.obj['builder'] = MatrixImageBuilder(container_engine, base_dir=directory, context=config.context)

    if ctx.invoked_subcommand is not None:
        return

    builder = ctx.obj['builder']
    click.echo(f"Building {len(targets)} image(s) for {config.registry}:{config.tag}")
    try:
        images = builder.build_all(config.axes, config.registry, config.tag,
                                   targets=targets, push=push, jobs=jobs)
    except MatrixBuildError as e:
        raise click.ClickException(
            f"{len(e.failures)} of {len(targets)} target(s) failed:\n  " + "\n  ".join(e.failed_identities)
        )
    for image in images:
        click.echo(str(image))

@build_matrix.command()
@click.pass_context
def clean(ctx):
    """Remove rendered Dockerfiles."""
    removed = ctx.obj['builder'].clean()
    click.echo(f"Removed {len(removed)} rendered file(s).")

@build_matrix.command('list')
@click.option('--format', 'fmt', type=click.Choice(['text', 'json']), default='text')
@click.pass_context
def list_targets(ctx, fmt):
    """List target identities in build order."""
    targets = ctx.obj['targets']
    if fmt == 'json':
        click.echo(json.dumps({"include": [
            {
                "target": t.identity,
                "distribution": t.distribution.name,
                "cuda": t.library_version,
                "nightly": t.channel_version,
            }
            for t in targets
        ]}))
        return
    for target in targets:
        click.echo(target.identity)

@build_matrix.command()
@click.pass_context
def render(ctx):
    """Write the rendered Dockerfiles without building."""
    try:
        paths = ctx.obj['builder'].render_all(ctx.obj['config'].axes, targets=ctx.obj['targets'])
    except MatrixBuildError as e:
        raise click.ClickException(f"Rendering failed for: {', '.join(e.failed_identities)}")
    for path in paths:
        click.echo(path)

def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})

if __name__ == '__main__':
    main()
