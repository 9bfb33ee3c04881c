"""
Run with: python -m streamcloud
"""
from __future__ import annotations

import sys
from typing import Optional

from streamcloud.app.application import create_app
from streamcloud.app.ui.main_window import MainWindow
from streamcloud.config import CloudConfig
from streamcloud.controller.session import CloudSession


def main(
    session: Optional[CloudSession] = None,
    source: Optional[str] = None,
    rate: Optional[float] = None,
    count_threshold: Optional[int] = None,
) -> int:
    """Main entry point for the GUI application."""
    app = create_app()
    session = session or CloudSession(CloudConfig.from_env())
    win = MainWindow(session, count_threshold=count_threshold)
    if source:
        win.start_stream(source, rate=rate)
    win.show()
    return app.exec()

if __name__ == "__main__":
    sys.exit(main())
