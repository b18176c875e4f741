"""Jinja2 templates and static file locations shared by all routers."""

from pathlib import Path

from fastapi.templating import Jinja2Templates

package_dir = Path(__file__).resolve().parent.parent
templates_dir = package_dir / "templates"
static_dir = package_dir / "static"

templates = Jinja2Templates(directory=str(templates_dir))
