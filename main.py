"""Desktop entry point: open a PDF (local file or remote template) in the signing editor."""
from __future__ import annotations

import argparse
import logging
import tkinter as tk
from pathlib import Path
from typing import List, Optional

from core.config.config_service import get_config_service
from core.event_log.logic.event_logger import get_event_logger
from signing.gui.editor_view import EditorView
from signing.logic import page_renderer
from signing.logic.editor_session import EditorSession
from signing.logic.signature_pad import SignaturePad
from signing.models.editor_config import EditorConfig, SignConfig
from signing.models.element_position import RawPosition
from signing.models.notice import Notice


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Place a hand-drawn signature on a PDF.")
    p.add_argument("pdf", nargs="?", metavar="PDF", help="Local PDF file to sign")
    p.add_argument("--document-id", help="Remote document id")
    p.add_argument("--template-id", help="Remote template id (coordinates and new document)")
    p.add_argument("--session-token", help="Existing public signing session token")
    p.add_argument("--sign-endpoint", help="Custom submission endpoint")
    p.add_argument("--name", default="", help="Signer name")
    p.add_argument("--email", default="", help="Signer email")
    p.add_argument("--page", type=int, default=1, help="Signature page (1-based)")
    p.add_argument("--x", type=float, default=72.0, help="Signature x in points")
    p.add_argument("--y", type=float, default=72.0, help="Signature y in points (from bottom)")
    p.add_argument("--show-name", action="store_true")
    p.add_argument("--show-email", action="store_true")
    p.add_argument("--show-date", action="store_true")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    settings = get_config_service()
    logging.basicConfig(
        level=getattr(logging, str(settings.logging.level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    root = tk.Tk()
    root.withdraw()
    views: List[EditorView] = []

    def notify(notice: Notice) -> None:
        if views:
            views[0].show_notice(notice)

    config = EditorConfig.from_settings(
        settings,
        pdf_bytes=Path(args.pdf).read_bytes() if args.pdf else None,
        document_id=args.document_id,
        template_id=args.template_id,
        session_token=args.session_token,
        sign_config=SignConfig(endpoint=args.sign_endpoint),
        document_name=Path(args.pdf).stem if args.pdf else "document",
        signer_name=args.name,
        signer_email=args.email,
        signature_position=RawPosition(x=args.x, y=args.y, page_number=args.page),
        show_signer_name=args.show_name,
        show_signer_email=args.show_email,
        show_signing_date=args.show_date,
        on_cancel=root.quit,
        notify=notify,
    )

    page_renderer.initialize_renderer()
    session = EditorSession(
        config,
        pad=SignaturePad(EditorView.PAD_W, EditorView.PAD_H),
        event_logger=get_event_logger(),
    )
    view = EditorView(root, session, title=f"Sign {config.document_name}")
    views.append(view)
    view.bind("<Destroy>", lambda e: root.quit() if e.widget is view else None)
    root.mainloop()


if __name__ == "__main__":
    main()
