from __future__ import annotations

from svgview_core.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
