from pathlib import Path

from fastapi.templating import Jinja2Templates


UI_DIR = Path(__file__).resolve().parent
STATIC_DIR = UI_DIR / 'static'

templates = Jinja2Templates(directory=str(UI_DIR / 'templates'))
