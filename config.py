import typer, json, pathlib
from rich.console import Console

app = typer.Typer(rich_markup_mode="markdown")
console = Console()

CONFIG_PATH = pathlib.Path("config.json")

def read_config(path: pathlib.Path | None = None) -> dict:
    path = path or CONFIG_PATH
    if not path.exists() or path.stat().st_size == 0:
        return dict()
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)

@app.command()
def set(
    cookies: str = typer.Option("", help="Path to your cookies.json, should use Cookie-Editor JSON format"),
    proxy: str = typer.Option("", help="Proxy URL"),
    user_agent: str = "",
    host: str = typer.Option("", help="Site host, for when Komik Cast moves to a new domain"),
    rate_limit: float = typer.Option(-1, help="Max requests per second, 0 disables the limit"),
):
    """
    Write config to `config.json`
    """
    config = read_config()

    if cookies: config["cookies"] = cookies
    if proxy: config["proxy"] = proxy
    if user_agent: config["user_agent"] = user_agent
    if host: config["host"] = host if "//" in host else f"https://{host}"
    if rate_limit >= 0: config["rate_limit"] = rate_limit

    with open(CONFIG_PATH, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2)
    console.print(f"[green]Config saved to '{CONFIG_PATH}'[/]")

@app.command()
def reset():
    """Delete `config.json` to reset"""
    if CONFIG_PATH.exists():
        CONFIG_PATH.unlink(missing_ok=True)
        console.print(f"[green]Config reset[/]")
    else:
        console.print(f"[yellow]No need to reset, config file not found[/]")

@app.command()
def show():
    """Show content of `config.json`"""
    if not CONFIG_PATH.exists():
        console.print(f"[yellow]No config found[/]")
        return

    console.print(read_config())
