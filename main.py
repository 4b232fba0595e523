from client import KomikCastClient
from filters import FilterState, SelectFilter, GenreListFilter, ProjectFilter, HeaderFilter, STATUS_FILTER, TYPE_FILTER, ORDER_BY_FILTER, GENRE_FILTER, PROJECT_FILTER
from utils import getLegalPath
import typer, pathlib, time, config, zipfile, logging, io
from urllib.parse import urlsplit
from PIL import Image
from rich.console import Console
from rich.markup import escape
from rich.logging import RichHandler
from rich.table import Table, Column
from rich.progress import track

app = typer.Typer(rich_markup_mode="markdown")
app.add_typer(config.app, name="config")
console = Console()
client = KomikCastClient()
log = logging.getLogger("komikcast")

def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )

@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs, including every request"),
    config_path: str = typer.Option("", "--config", help="Use another config file instead of `config.json`"),
):
    """
    Browse and download **Komik Cast** manga from the command line
    """
    global client
    setup_logging(verbose)
    if config_path:
        client.close()
        client = KomikCastClient(custom_config_path=config_path)

def print_manga_list(results, has_next: bool, title: str):
    table = Table(
        Column("Title", overflow="fold"),
        Column("URL", overflow="fold"),
        title=title,
        show_lines=True
    )
    for result in results:
        table.add_row(result.title, result.href)
    console.print(table)
    if has_next:
        console.print("[cyan]More results on the next page[/]")

@app.command()
def popular(page: int = typer.Option(1, min = 1)):
    """List the most popular series"""
    results, has_next = client.popular(page)
    print_manga_list(results, has_next, f"Popular (page {page})")

@app.command()
def latest(page: int = typer.Option(1, min = 1)):
    """List the latest updated series"""
    results, has_next = client.latest(page)
    print_manga_list(results, has_next, f"Latest Updates (page {page})")

def build_filter_state(
    status: str = "",
    type_: str = "",
    order: str = "",
    genres: list[str] | None = None,
    project: bool = False,
) -> FilterState:
    state = FilterState()
    if status: state.select(STATUS_FILTER, status)
    if type_: state.select(TYPE_FILTER, type_)
    if order: state.select(ORDER_BY_FILTER, order)
    for genre in genres or []:
        if genre.startswith("-"):
            state.exclude(GENRE_FILTER, genre[1:])
        else:
            state.include(GENRE_FILTER, genre)
    if project: state.set_project(PROJECT_FILTER)
    return state

@app.command()
def search(
    query: str = typer.Argument("", help="Keyword, leave empty to browse with filters only"),
    page: int = typer.Option(1, min = 1),
    status: str = typer.Option("", help="All, Ongoing or Completed"),
    type_: str = typer.Option("", "--type", help="All, Manga, Manhwa or Manhua"),
    order: str = typer.Option("", help="Default, A-Z, Z-A, Update or Popular"),
    genre: list[str] = typer.Option([], help="Genre to include, prefix with `-` to exclude. Repeatable"),
    project: bool = typer.Option(False, help="Browse the project list page instead"),
):
    """
    Search series by keyword and filters

    Run `filters` to see every available option
    """
    try:
        state = build_filter_state(status, type_, order, genre, project)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/]")
        raise typer.Exit(1)

    if project and (status or type_ or order or genre):
        console.print("[yellow]NOTE: Project list page can't be used with other filter[/]")

    log.debug("Search url: %s", client.search_url(query, page, state))
    results, has_next = client.search(query, page, state)
    print_manga_list(results, has_next, f"Search Results (page {page})")

@app.command()
def filters():
    """Show all search filters and their options"""
    table = Table(
        "Filter",
        "Kind",
        Column("Options", overflow="fold"),
        "Default",
        title="Search Filters",
        show_lines=True
    )
    for _filter in client.filters():
        if isinstance(_filter, SelectFilter):
            table.add_row(
                _filter.name,
                "select",
                ", ".join(f"{o.label} ({o.value or '-'})" for o in _filter.options),
                _filter.options[_filter.default].label,
            )
        elif isinstance(_filter, GenreListFilter):
            table.add_row(
                _filter.name,
                "include / exclude",
                ", ".join(o.value for o in _filter.options),
                "none",
            )
        elif isinstance(_filter, ProjectFilter):
            table.add_row(_filter.name, "toggle", _filter.path, "off")
        elif isinstance(_filter, HeaderFilter):
            table.add_row("", "note", f"[italic]{_filter.text}[/]", "")
    console.print(table)

@app.command()
def details(url: str):
    """Show details of a series"""
    info = client.manga_details(url)
    table = Table(show_header=False, title=info.title, show_lines=True)
    table.add_row("Alt Name", info.alt_name)
    table.add_row("Author", info.author)
    table.add_row("Type", info.type)
    table.add_row("Status", info.status)
    table.add_row("Genres", ", ".join(info.genres))
    table.add_row("Thumbnail", info.thumbnail_url)
    table.add_row("Description", info.description)
    console.print(table)

@app.command()
def chapters(url: str):
    """List chapters of a series"""
    table = Table(
        Column("Chapter", overflow="fold"),
        "Upload Date",
        Column("URL", overflow="fold"),
        title="Chapters",
        show_lines=True
    )
    for chapter in client.chapters(url):
        table.add_row(
            chapter.name,
            chapter.date_upload.strftime("%Y/%m/%d") if chapter.date_upload else "-",
            chapter.href,
        )
    console.print(table)

@app.command()
def pages(chapter_url: str):
    """List image URLs of a chapter"""
    result = client.pages(chapter_url)
    if not result:
        console.print(f"[yellow]No pages found in '{chapter_url}'[/]")
        return
    table = Table("No.", Column("Image URL", overflow="fold"), title="Pages")
    for page in result:
        table.add_row(str(page.index + 1), page.image_url)
    console.print(table)

def image_extension(url: str, content_type: str = "") -> str:
    suffix = pathlib.PurePosixPath(urlsplit(url).path).suffix.lower()
    if suffix in (".jpg", ".jpeg", ".png", ".webp", ".gif", ".avif"):
        return suffix
    if "/" in content_type:
        subtype = content_type.split(";")[0].split("/")[-1].strip()
        return ".jpg" if subtype == "jpeg" else f".{subtype}"
    return ".jpg"

@app.command("download-chapter")
def download_chapter(
    chapter_url: str,
    save_dir: str = "",
    cbz: bool = typer.Option(False, help="Save as CBZ file"),
    overwrite: bool = typer.Option(False, help="Overwrite existing files"),
    wait_interval: float = typer.Option(0.5, min = 0, help="Wait interval between each page download"),
    png: bool = typer.Option(False, help="Convert every page to PNG"),
    png_compression: int = typer.Option(1, min = 0, max = 9, help="PNG compression level"),
):
    """Download every page of a chapter"""
    chapter_pages = client.pages(chapter_url)
    if not chapter_pages:
        log.warning("No pages found in %s", chapter_url)
        console.print(f"[red]No pages found in '{chapter_url}'[/]")
        raise typer.Exit(1)

    chapter_name = getLegalPath(urlsplit(chapter_url).path.rstrip("/").split("/")[-1] or "chapter")
    save_dir_path = pathlib.Path(save_dir)
    if not cbz:
        save_dir_path = save_dir_path / chapter_name
    save_dir_path.mkdir(parents=True, exist_ok=True)

    filename_just = max(3, len(str(len(chapter_pages))))

    console.print(f"[green] Downloading {len(chapter_pages)} pages of '{chapter_name}'[/]")

    cbz_file = zipfile.ZipFile(save_dir_path / f"{chapter_name}.cbz", "w") if cbz else None

    saved = 0
    try:
        for page in track(chapter_pages):
            stem = str(page.index + 1).rjust(filename_just, '0')
            if not cbz and not overwrite and any(save_dir_path.glob(f"{stem}.*")): continue

            response = client.get_image(page)
            filebytes = response.content
            ext = image_extension(page.image_url, response.headers.get("Content-Type", ""))
            if png:
                with Image.open(io.BytesIO(filebytes)) as img:
                    buffer = io.BytesIO()
                    img.save(buffer, format = "PNG", compress_level = png_compression)
                    filebytes = buffer.getvalue()
                ext = ".png"

            if cbz_file:
                cbz_file.writestr(f"{stem}{ext}", filebytes)
            else:
                (save_dir_path / f"{stem}{ext}").write_bytes(filebytes)
            saved += 1
            time.sleep(wait_interval)
    finally:
        if cbz_file:
            cbz_file.close()

    console.print(f"[green] Downloaded {saved} pages to '{save_dir_path}'[/]")

if __name__ == "__main__":
    app()
