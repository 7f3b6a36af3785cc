"""CLI entry point for VisionVoice."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from visionvoice import __version__
from visionvoice.core.state import NarrationSnapshot, NarrationState

logger = logging.getLogger(__name__)

SESSION_HELP = """Commands:
  tap            tap the screen; one tap stops reading, two quick taps retake
  retake         double tap (take another photo)
  up N / down N  drag N pixels up or down
  release        end the drag
  speed X        pick a preset speed
  auto on|off    toggle auto-read
  reader on|off  simulate a screen reader starting or stopping
  quit           end the session"""


def _load_config(config_path: Optional[str], language: Optional[str]):
    from visionvoice.core.config import AppConfig
    from visionvoice.core.logging import setup_logging

    try:
        app_config = AppConfig.load(config_path=config_path)
        if language:
            app_config.language = language
    except Exception as e:
        click.echo(f"Error loading config: {e}", err=True)
        sys.exit(1)

    log_cfg = app_config.logging
    setup_logging(
        level=log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file", "visionvoice.log"),
        log_dir=log_cfg.get("dir"),
        console=log_cfg.get("console", True),
    )
    return app_config


def _preferences(app_config):
    from visionvoice.storage.preferences import JsonFilePreferenceStore, NarrationPreferences

    return NarrationPreferences(
        JsonFilePreferenceStore(app_config.narration.preferences_path),
        default_rate=app_config.narration.default_rate,
        default_auto_read=app_config.narration.default_auto_read,
    )


def _render(snapshot: NarrationSnapshot, language: str) -> None:
    from visionvoice.core.i18n import translate

    if snapshot.is_loading:
        click.echo(translate("result.analyzing", language))
        return
    line = f"[{snapshot.state.value}] " + translate(
        "result.speed", language, value=f"{snapshot.rate:.1f}"
    )
    line += "  " + translate(
        "result.autoRead", language, value="on" if snapshot.auto_read else "off"
    )
    if snapshot.state is NarrationState.STOPPED:
        line += f"  {translate('result.paused', language)}"
    click.echo(line)


@click.group()
@click.version_option(version=__version__)
def main():
    """VisionVoice: hear a photo described aloud."""
    pass


@main.command()
@click.argument("image", type=click.Path(exists=True, dir_okay=False))
@click.option("--description", "-d", default=None,
              help="Skip analysis and read this text instead")
@click.option("--config", "-c", default=None, help="Path to custom config YAML")
@click.option("--language", "-l", default=None,
              type=click.Choice(["auto", "en", "zh"]), help="Narration language")
@click.option("--silent", is_flag=True, help="Use the audio-free speech backend")
@click.option("--interactive", "-i", is_flag=True,
              help="Read tap/drag/speed commands from stdin")
def describe(image, description, config, language, silent, interactive):
    """Describe IMAGE and read the description aloud."""
    app_config = _load_config(config, language)
    if silent:
        app_config.speech.backend = "silent"
    try:
        asyncio.run(_run_session(app_config, image, description, interactive))
    except KeyboardInterrupt:
        pass


async def _run_session(app_config, image: str, description: Optional[str], interactive: bool):
    from visionvoice.accessibility.screen_reader import (
        ManualScreenReaderStatus,
        ProcessScreenReaderMonitor,
    )
    from visionvoice.controls.gesture import GestureRateController
    from visionvoice.controls.taps import TapDisambiguator
    from visionvoice.core.i18n import detect_language, translate
    from visionvoice.narration.controller import NarrationController
    from visionvoice.tts.engine import SpeechEngine
    from visionvoice.tts.factory import create_speech_backend
    from visionvoice.vision.factory import create_description_provider

    lang = detect_language(app_config.language)
    preferences = _preferences(app_config)
    gesture = app_config.gesture

    monitor = None
    if interactive or app_config.narration.screen_reader == "off":
        screen_reader = ManualScreenReaderStatus()
    else:
        monitor = ProcessScreenReaderMonitor(app_config.narration.screen_reader_poll_seconds)
        await monitor.refresh()
        monitor.start()
        screen_reader = monitor

    engine = SpeechEngine(create_speech_backend(app_config.speech))
    rates = GestureRateController(
        preferences,
        rate=app_config.narration.default_rate,
        min_rate=gesture.min_rate,
        max_rate=app_config.speech.max_rate,
        sensitivity=gesture.sensitivity,
        throttle_seconds=gesture.throttle_seconds,
        deadband=gesture.deadband,
    )
    done = asyncio.Event()

    def on_retake():
        click.echo(translate("result.retake", lang))
        done.set()

    controller = NarrationController(
        engine=engine,
        provider=create_description_provider(app_config, lang),
        preferences=preferences,
        screen_reader=screen_reader,
        rate_controller=rates,
        taps=TapDisambiguator(app_config.narration.double_tap_window),
        language=lang,
        on_retake=on_retake,
    )

    shown_description = None

    def on_snapshot(snapshot: NarrationSnapshot):
        nonlocal shown_description
        if snapshot.description and snapshot.description != shown_description:
            shown_description = snapshot.description
            click.echo(f"\n{translate('result.imageDescription', lang)}:\n{snapshot.description}\n")
            click.echo(translate("result.doubleTapRetake", lang))
        _render(snapshot, lang)
        if not interactive and snapshot.state in (
            NarrationState.IDLE, NarrationState.STOPPED,
        ) and snapshot.description is not None:
            done.set()

    controller.subscribe(on_snapshot)
    await controller.initialize()

    try:
        controller.start_session(str(Path(image)), description)
        if interactive:
            click.echo(SESSION_HELP)
            await _command_loop(controller, screen_reader, done)
        else:
            await done.wait()
    finally:
        controller.close()
        engine.close()
        if monitor is not None:
            monitor.stop()


async def _command_loop(controller, screen_reader, done: asyncio.Event):
    while not done.is_set():
        line = await asyncio.to_thread(sys.stdin.readline)
        if not line:
            break
        parts = line.strip().split()
        if not parts:
            continue
        cmd, args = parts[0].lower(), parts[1:]
        try:
            if cmd == "quit":
                break
            elif cmd == "tap":
                controller.tap()
            elif cmd == "retake":
                controller.double_tap()
            elif cmd in ("up", "down"):
                pixels = float(args[0]) if args else 150.0
                await controller.on_drag_delta(-pixels if cmd == "up" else pixels)
            elif cmd == "release":
                await controller.on_drag_end()
            elif cmd == "speed":
                await controller.select_speed(float(args[0]))
            elif cmd == "auto":
                await controller.set_auto_read(args[:1] == ["on"])
            elif cmd == "reader":
                screen_reader.set_active(args[:1] == ["on"])
            else:
                click.echo(SESSION_HELP)
        except (ValueError, IndexError):
            click.echo(f"Bad arguments for '{cmd}'", err=True)


@main.command()
@click.argument("value", required=False, type=float)
@click.option("--config", "-c", default=None, help="Path to custom config YAML")
def rate(value, config):
    """Show or set the saved reading rate."""
    app_config = _load_config(config, None)
    preferences = _preferences(app_config)
    low, high = app_config.gesture.min_rate, app_config.speech.max_rate

    async def run():
        if value is not None:
            clamped = max(low, min(high, value))
            if not await preferences.save_rate(clamped):
                click.echo("Could not save the rate.", err=True)
                sys.exit(1)
        return await preferences.load_rate()

    click.echo(f"Rate: {asyncio.run(run()):.1f}")


@main.command(name="auto-read")
@click.argument("value", required=False, type=click.Choice(["on", "off"]))
@click.option("--config", "-c", default=None, help="Path to custom config YAML")
def auto_read(value, config):
    """Show or set whether descriptions are read automatically."""
    app_config = _load_config(config, None)
    preferences = _preferences(app_config)

    async def run():
        if value is not None:
            if not await preferences.save_auto_read(value == "on"):
                click.echo("Could not save auto-read.", err=True)
                sys.exit(1)
        return await preferences.load_auto_read()

    click.echo(f"Auto read: {'on' if asyncio.run(run()) else 'off'}")


if __name__ == "__main__":
    main()
