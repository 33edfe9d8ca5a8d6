"""jsonmend command line: repair near-JSON from a file or stdin."""

import json
import sys
import time

import click

from jsonmend import renderer
from jsonmend.config import SanitizerConfig
from jsonmend.diagnostics import analyze_error
from jsonmend.extract import parse_response
from jsonmend.logging_config import log_sanitization, setup_logging
from jsonmend.sanitizer import sanitize
from jsonmend.stages import STAGE_NAMES
from jsonmend.types import JSONRecoveryError


def _emit(value, indent: int):
    click.echo(json.dumps(value, indent=indent if indent > 0 else None, ensure_ascii=False))


@click.command()
@click.argument("source", type=click.File("r", encoding="utf-8"), default="-")
@click.option("--indent", type=int, default=2, show_default=True, help="Indentation of the printed JSON (0 for compact)")
@click.option("--json", "as_json", is_flag=True, help="Print the full sanitization result as JSON")
@click.option("--diagnose", is_flag=True, help="Only report where the input fails to parse; do not repair")
@click.option("--fixes", "show_fixes", is_flag=True, help="Show the applied fixes on stderr")
@click.option("--extract", is_flag=True, help="Treat input as a full LLM response and extract its JSON payload")
@click.option("--require", "required_keys", multiple=True, help="Key the extracted object must contain (with --extract)")
@click.option("--skip", "skip_stages", multiple=True, type=click.Choice(STAGE_NAMES), help="Repair stage to skip (repeatable)")
@click.option("--no-aggressive", is_flag=True, help="Do not run the last-resort repair pass")
@click.option("--list-stages", is_flag=True, help="List the repair stages and exit")
@click.option("-v", "--verbose", is_flag=True, help="Log to ~/.jsonmend/logs and show warnings on the console")
def main(source, indent: int, as_json: bool, diagnose: bool, show_fixes: bool, extract: bool,
         required_keys: tuple[str, ...], skip_stages: tuple[str, ...], no_aggressive: bool,
         list_stages: bool, verbose: bool):
    """Repair malformed JSON from SOURCE (a file, or stdin when omitted)."""
    if list_stages:
        renderer.show_stages()
        return

    if verbose:
        setup_logging(verbose=True)

    text = source.read()

    if diagnose:
        location = analyze_error(text)
        if location is None:
            renderer.show_valid()
            return
        renderer.show_location(location)
        sys.exit(1)

    config = SanitizerConfig.from_file()
    config.skip_stages = tuple(config.skip_stages) + skip_stages
    if no_aggressive:
        config.aggressive = False
    try:
        config.validate()
    except ValueError as e:
        raise click.UsageError(str(e))

    if extract:
        try:
            value, result = parse_response(text, required_keys=required_keys, config=config)
        except JSONRecoveryError as e:
            renderer.show_failure(e.result, e.location)
            sys.exit(1)
        if as_json:
            _emit(result.to_dict(), indent)
        else:
            _emit(value, indent)
        if show_fixes:
            renderer.show_fixes(result)
        renderer.show_warnings(result.warnings)
        return

    start = time.time()
    result = sanitize(text, config)
    if verbose:
        log_sanitization(getattr(source, "name", "<stdin>"), result, time.time() - start)

    if as_json:
        _emit(result.to_dict(), indent)
    elif result.success:
        _emit(json.loads(result.sanitized_text), indent)

    if show_fixes:
        renderer.show_fixes(result)

    if not result.success:
        if not as_json:
            renderer.show_failure(result, analyze_error(result.sanitized_text))
        sys.exit(1)


if __name__ == "__main__":
    main()
