"""Command-line interface for ArticleScope."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import click
import structlog
import yaml
from pydantic import ValidationError

from articlescope import __version__
from articlescope.config import Config, MonitoringConfig, TrainerConfig, find_config_file
from articlescope.extractor import ArticleExtractor
from articlescope.observability import configure_logging
from articlescope.training import RerankerTrainer

logger = structlog.get_logger(__name__)


def _load_config(config_path: Optional[Path]) -> Config:
    path = config_path or find_config_file()
    if path is None:
        return Config()
    try:
        return Config.from_yaml(path)
    except (ValidationError, yaml.YAMLError) as e:
        click.echo(f"Invalid configuration in {path}: {e}", err=True)
        sys.exit(2)


def _read_page(path: str) -> str:
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", type=click.Path(exists=True, dir_okay=False), help="Configuration file path")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level (overrides the configuration file)",
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], log_level: Optional[str]) -> None:
    """ArticleScope - main-article extraction from rendered web pages."""
    ctx.ensure_object(dict)
    loaded = _load_config(Path(config) if config else None)
    monitoring = loaded.monitoring
    if log_level:
        monitoring = MonitoringConfig(log_level=log_level, log_file=monitoring.log_file)
    configure_logging(monitoring)
    ctx.obj["config"] = loaded


@cli.command()
@click.argument("page", type=click.Path(exists=True, dir_okay=False))
@click.option("--url", default=None, help="URL the page was rendered from")
@click.pass_context
def extract(ctx: click.Context, page: str, url: Optional[str]) -> None:
    """Extract the main article from a saved HTML page and print it as JSON."""
    extractor = ArticleExtractor(ctx.obj["config"])
    result = extractor.extract(_read_page(page), url=url)
    click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    if result.html is None:
        sys.exit(1)


@cli.command("live-blog")
@click.argument("page", type=click.Path(exists=True, dir_okay=False))
@click.option("--url", default=None, help="URL the page was rendered from")
@click.pass_context
def live_blog(ctx: click.Context, page: str, url: Optional[str]) -> None:
    """Digest the timestamped updates of a live-blog page."""
    extractor = ArticleExtractor(ctx.obj["config"])
    digest = extractor.extract_live_blog(_read_page(page), url=url)
    click.echo(json.dumps(digest.to_dict(), indent=2, ensure_ascii=False))
    if not digest.ok:
        sys.exit(1)


@cli.command()
@click.argument("dataset", type=click.Path(exists=True, dir_okay=False))
@click.option("--out", "-o", type=click.Path(dir_okay=False), default=None, help="Write the model JSON here")
@click.option("--learning-rate", type=float, default=None, help="Gradient-descent step size")
@click.option("--epochs", type=int, default=None, help="Full-batch passes over the dataset")
@click.option("--l2", type=float, default=None, help="L2 regularization strength")
@click.pass_context
def train(
    ctx: click.Context,
    dataset: str,
    out: Optional[str],
    learning_rate: Optional[float],
    epochs: Optional[int],
    l2: Optional[float],
) -> None:
    """Fit reranker weights from a labelled dataset dump."""
    base: TrainerConfig = ctx.obj["config"].trainer
    overrides = {
        key: value
        for key, value in (("learning_rate", learning_rate), ("epochs", epochs), ("l2", l2))
        if value is not None
    }
    try:
        trainer_config = TrainerConfig.model_validate({**base.model_dump(), **overrides})
    except ValidationError as e:
        raise click.BadParameter(str(e)) from e

    trainer = RerankerTrainer(trainer_config)
    try:
        model = trainer.train_file(Path(dataset))
        if out:
            trainer.save_model(model, Path(out))
            logger.info("Model written", path=out)
    except OSError as e:
        raise click.ClickException(str(e)) from e
    click.echo(json.dumps(model.to_dict(), indent=2))


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
