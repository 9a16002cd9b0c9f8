from __future__ import annotations

from dataclasses import replace

import typer

from lyricbar.app import resolve_current
from lyricbar.app import watch as watch_loop
from lyricbar.cache.files import CacheStore
from lyricbar.config import load_config, save_config
from lyricbar.host.mpris import MprisHost
from lyricbar.i18n import set_lang, t
from lyricbar.logging_setup import setup_logging
from lyricbar.lyrics.maintenance import remove_from_cache
from lyricbar.mpris.client import MprisClient
from lyricbar.mpris.errors import MprisError
from lyricbar.render.display import LyricsDisplay


app = typer.Typer(no_args_is_help=True, add_completion=False)


@app.command()
def watch(
    player: str | None = typer.Option(None, "--player", help="MPRIS service or short name (e.g. vlc)"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    refresh_hz: float | None = typer.Option(None, "--refresh-hz", help="Polling frequency (Hz)"),
    no_alt_screen: bool = typer.Option(False, "--no-alt-screen", help="Do not use alternate screen buffer"),
):
    """
    Show lyrics for whatever the MPRIS player is playing.
    """
    cfg = load_config()
    if refresh_hz is not None:
        cfg = replace(cfg, refresh_hz=refresh_hz)
    if no_alt_screen:
        cfg = replace(cfg, use_alt_screen=False)

    setup_logging(debug)
    raise typer.Exit(code=watch_loop(cfg, preferred_player=player or cfg.preferred_player))


@app.command()
def players():
    """List available MPRIS players."""
    for p in MprisClient.list_players():
        typer.echo(p)


@app.command()
def show(
    player: str | None = typer.Option(None, "--player", help="MPRIS service or short name (e.g. vlc)"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """Print lyrics for the current track and exit."""
    cfg = load_config()
    setup_logging(debug)
    try:
        res = resolve_current(cfg, preferred_player=player or cfg.preferred_player)
    except MprisError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)

    typer.echo(res.as_result().display_text())
    if not res.found:
        raise typer.Exit(code=1)


@app.command()
def cache(
    clear: bool = typer.Option(False, "--clear", help="Remove every cached entry"),
    forget: bool = typer.Option(False, "--forget", help="Remove the entry for the current track"),
    list_keys: bool = typer.Option(False, "--list", help="List cached entries"),
    player: str | None = typer.Option(None, "--player", help="MPRIS service or short name (e.g. vlc)"),
):
    """Manage the lyrics cache."""
    cfg = load_config()
    set_lang(cfg.lang)
    store = CacheStore(cfg.cache_dir)

    if clear:
        count = store.clear()
        typer.echo(t("cache_cleared", path=str(cfg.cache_dir), count=count))
    elif forget:
        host = MprisHost(cfg, LyricsDisplay(), preferred_player=player or cfg.preferred_player)
        try:
            host.poll()
        except MprisError as e:
            typer.echo(str(e), err=True)
            raise typer.Exit(code=1)
        typer.echo(t("cache_forgotten", count=remove_from_cache(host, store)))
    elif list_keys:
        keys = store.keys()
        if not keys:
            typer.echo(t("cache_empty", path=str(cfg.cache_dir)))
        for key in keys:
            typer.echo(key)
    else:
        typer.echo(t("cache_usage"))


@app.command()
def config(
    lang: str | None = typer.Option(None, "--lang", help="Interface language: en|ru"),
    command: str | None = typer.Option(
        None, "--command", help='Lyrics command template, e.g. my-lyrics "%artist%" "%title%"; empty disables'
    ),
):
    """Save settings to config.json."""
    values: dict[str, str] = {}
    if lang is not None:
        if lang.upper() not in ("EN", "RU"):
            raise typer.BadParameter("lang must be one of: en, ru")
        values["lang"] = lang
    if command is not None:
        values["custom_command"] = command

    set_lang(load_config().lang)
    if not values:
        typer.echo(t("config_usage"))
        return

    path = save_config(**values)
    set_lang(load_config().lang)
    typer.echo(t("config_saved", path=str(path)))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
