# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.


"""
Command Line Interface for OGCI.
"""
import click

from ..BUILDERS.image_builder import ImageBuilder
from ..errors import PipelineError
from ..MANAGERS.environment_manager import EnvironmentManager
from ..MANAGERS.smoke_runner import SmokeRunner
from ..MODELS.pipeline_context import PipelineContext
from ..MODELS.smoke_settings import SmokeSettings
from ..PARSERS.settings_parser import SettingsParser
from ..REGISTRY.image_reference import ImageReference
from ..REGISTRY.publisher import Publisher
from ..RUNNERS.docker_cli import DockerCLI
from ..UTILS.version_resolver import resolve_tags


@click.group()
@click.option('--env-file', '-e', multiple=True, help='.env file with CI inputs (repeatable)')
@click.option('--config', '-c', type=click.Path(exists=True, dir_okay=False), help='YAML settings file')
@click.option('--image', help='Image repository, overrides the settings file')
@click.pass_context
def cli(ctx, env_file, config, image):
    """
    OGCI - lint, build, smoke-test and publish the OpenGrok image.

    CI inputs come from OPENGROK_REF, OPENGROK_TAG, GITHUB_EVENT_NAME,
    OPENGROK_REPO_SLUG, DOCKER_USERNAME and DOCKER_PAT.
    """
    ctx.ensure_object(dict)
    ctx.obj.setdefault('docker', DockerCLI())
    try:
        settings = SettingsParser().parse(config) if config else SmokeSettings()
    except PipelineError as e:
        _fail(ctx, e)
    if image:
        settings = settings.model_copy(update={'image': image})
    try:
        ImageReference.parse(settings.image)
    except ValueError as e:
        _fail(ctx, PipelineError(f"Invalid image reference: {e}"))
    ctx.obj['settings'] = settings
    ctx.obj['ci'] = EnvironmentManager().load_ci_settings(list(env_file))


def _fail(ctx, error):
    click.echo(f"ERROR: {error}", err=True)
    ctx.exit(1)


def _context(ctx) -> PipelineContext:
    ci = ctx.obj['ci']
    return PipelineContext(
        image=ctx.obj['settings'].image,
        tags=resolve_tags(ci.ref, ci.tag),
    )


@cli.command()
@click.pass_context
def tags(ctx):
    """Print the tags this build is published under."""
    try:
        context = _context(ctx)
    except PipelineError as e:
        _fail(ctx, e)
    for tag in context.tags.tags:
        click.echo(tag)


@cli.command()
@click.pass_context
def lint(ctx):
    """Lint the Dockerfile."""
    try:
        ImageBuilder(ctx.obj['docker'], ctx.obj['settings']).lint()
    except PipelineError as e:
        _fail(ctx, e)


@cli.command()
@click.pass_context
def build(ctx):
    """Build the image under every resolved tag."""
    try:
        context = _context(ctx)
        ImageBuilder(ctx.obj['docker'], ctx.obj['settings']).build(context.tags)
    except PipelineError as e:
        _fail(ctx, e)


@cli.command()
@click.pass_context
def smoke(ctx):
    """Start the built image and verify it."""
    try:
        context = _context(ctx)
        report = SmokeRunner(ctx.obj['docker'], ctx.obj['settings']).run(context)
    except PipelineError as e:
        _fail(ctx, e)
    click.echo(report.summary())


@cli.command()
@click.pass_context
def publish(ctx):
    """Push every tag to the registry, unless this run may not publish."""
    try:
        context = _context(ctx)
        Publisher(ctx.obj['docker'], ctx.obj['settings']).publish(ctx.obj['ci'], context)
    except PipelineError as e:
        _fail(ctx, e)


@cli.command()
@click.option('--skip-publish', is_flag=True, help='Stop after the smoke test')
@click.pass_context
def run(ctx, skip_publish):
    """Lint, build, smoke-test and publish."""
    docker = ctx.obj['docker']
    settings = ctx.obj['settings']
    try:
        builder = ImageBuilder(docker, settings)
        builder.lint()
        context = _context(ctx)
        builder.build(context.tags)
        report = SmokeRunner(docker, settings).run(context)
        click.echo(report.summary())
        if skip_publish:
            click.echo("Publishing skipped")
            return
        outcome = Publisher(docker, settings).publish(ctx.obj['ci'], context)
        click.echo(f"Publish: {outcome.value}")
    except PipelineError as e:
        _fail(ctx, e)


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
