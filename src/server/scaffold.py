"""Create the directory layout and starter files of a new wiki."""

from pathlib import Path

CONFIG_NAME = "config.txt"
PAGES_DIR = "pages"
INDEX_NAME = "index.html"

DEFAULT_CONFIG = """\
# Wiki search configuration
pagespath = ./{pages_dir}
indexpath = ./{index_name}
port = {port}
use_ssl = false
watch = true
poll_interval = 1.0
"""

WELCOME_PAGE = """\
# Welcome

This is the first page of your wiki. Add more markdown files to the
`{pages_dir}` directory and they will show up in the search box.
"""

INDEX_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Wiki</title>
</head>
<body>
  <input id="search-bar" type="text" placeholder="Search pages">
  <div id="dropdown" class="dropdown-content"></div>
  <div id="pages" hidden></div>
  <script>
    const searchBar = document.getElementById("search-bar");
    const dropdown = document.getElementById("dropdown");

    function pageTitle(slug) {
      return slug.split("-")
        .map((word) => word.charAt(0).toUpperCase() + word.slice(1))
        .join(" ");
    }

    searchBar.addEventListener("input", () => {
      const query = searchBar.value.trim().toLowerCase();
      const slugs = document.getElementById("pages").textContent
        .split(/\\s+/)
        .filter((slug) => slug && query && slug.startsWith(query));
      dropdown.replaceChildren(...slugs.map((slug) => {
        const link = document.createElement("a");
        link.href = `generated/${slug}.html`;
        link.innerText = pageTitle(slug);
        return link;
      }));
    });
  </script>
</body>
</html>
"""


def initialize_wiki(root: Path, port: int = 8888) -> list[Path]:
    """Create the config file, pages directory and index page of a wiki.

    Files that already exist are left untouched.

    Args:
        root (Path): The wiki directory.
        port (int): The port written into the generated config.

    Returns:
        list[Path]: The files and directories that were created.

    """
    created: list[Path] = []

    pages_path = root / PAGES_DIR
    if not pages_path.exists():
        pages_path.mkdir(parents=True)
        created.append(pages_path)

    starter_files = {
        root / CONFIG_NAME: DEFAULT_CONFIG.format(
            pages_dir=PAGES_DIR,
            index_name=INDEX_NAME,
            port=port,
        ),
        root / INDEX_NAME: INDEX_TEMPLATE,
        pages_path / "welcome.md": WELCOME_PAGE.format(pages_dir=PAGES_DIR),
    }
    for path, content in starter_files.items():
        if path.exists():
            continue
        path.write_text(content, encoding="utf-8")
        created.append(path)

    return created
