# signing/gui/editor_view.py
from __future__ import annotations
import asyncio
import logging
import tkinter as tk
from tkinter import ttk, filedialog, messagebox
from typing import Optional

from PIL import ImageTk

from ..exceptions.errors import SigningError
from ..logic import page_renderer
from ..logic.editor_session import EditorSession
from ..models.element_position import RawPosition
from ..models.notice import Notice
from ..models.signing_enums import CoordinateMode, NoticeLevel

logger = logging.getLogger(__name__)

_NOTICE_COLORS = {
    NoticeLevel.SUCCESS: "#1B7F3B",
    NoticeLevel.ERROR: "#B00020",
    NoticeLevel.WARNING: "#A15C00",
    NoticeLevel.INFO: "#333333",
}


class EditorView(tk.Toplevel):
    """
    Desktop signing editor around one EditorSession.

    Left: page preview (pypdfium2) with the current signature targets outlined;
    clicking the page moves the signature when the template supplies none.
    Right: signature pad, signer fields and the action buttons.
    Async session actions run to completion on a private event loop.
    """
    PREVIEW_MAX_W = 520
    PREVIEW_MAX_H = 680
    PAD_W = 360
    PAD_H = 150

    def __init__(self, parent: tk.Misc, session: EditorSession, *, title: str = "Sign Document") -> None:
        super().__init__(parent)
        self.title(title)
        self.transient(parent)
        self.resizable(False, False)
        self.protocol("WM_DELETE_WINDOW", self._on_close)

        self._session = session
        self._loop = asyncio.new_event_loop()
        self._page_index = tk.IntVar(value=1)
        self._scale = 1.0
        self._bg_img_tk: Optional[ImageTk.PhotoImage] = None
        self._line = None

        self.columnconfigure(0, weight=1)
        self.columnconfigure(1, weight=0)

        # Page preview
        left = ttk.Frame(self)
        left.grid(row=0, column=0, sticky="nsew", padx=10, pady=10)
        nav = ttk.Frame(left)
        nav.grid(row=0, column=0, sticky="w")
        ttk.Label(nav, text="Page").pack(side="left")
        self._page_spin = ttk.Spinbox(nav, from_=1, to=1, width=5, textvariable=self._page_index,
                                      command=self._refresh_preview)
        self._page_spin.pack(side="left", padx=(6, 6))
        self._page_total = ttk.Label(nav, text="/ 0")
        self._page_total.pack(side="left")

        self._preview = tk.Canvas(left, width=self.PREVIEW_MAX_W, height=self.PREVIEW_MAX_H, bg="#f3f3f3",
                                  highlightthickness=1, highlightbackground="#888")
        self._preview.grid(row=1, column=0, pady=(8, 0))
        self._preview.bind("<Button-1>", self._on_preview_click)

        # Signature & signer
        right = ttk.Frame(self)
        right.grid(row=0, column=1, sticky="ns", padx=(0, 10), pady=10)
        ttk.Label(right, text="Draw your signature").grid(row=0, column=0, sticky="w")
        self._pad_canvas = tk.Canvas(right, width=self.PAD_W, height=self.PAD_H, bg="white",
                                     highlightthickness=1, highlightbackground="#888")
        self._pad_canvas.grid(row=1, column=0, pady=(4, 4))
        self._pad_canvas.bind("<ButtonPress-1>", self._on_down)
        self._pad_canvas.bind("<B1-Motion>", self._on_move)
        self._pad_canvas.bind("<ButtonRelease-1>", self._on_up)

        pad_bar = ttk.Frame(right)
        pad_bar.grid(row=2, column=0, sticky="w")
        ttk.Button(pad_bar, text="Clear", command=self._clear_pad).pack(side="left")
        ttk.Button(pad_bar, text="Import PNG/GIF", command=self._import).pack(side="left", padx=(6, 0))

        form = ttk.Frame(right)
        form.grid(row=3, column=0, sticky="ew", pady=(10, 0))
        form.columnconfigure(1, weight=1)
        self._name_var = tk.StringVar(value=session.signer_name)
        self._email_var = tk.StringVar(value=session.signer_email)
        ttk.Label(form, text="Name").grid(row=0, column=0, sticky="w")
        ttk.Entry(form, textvariable=self._name_var).grid(row=0, column=1, sticky="ew", padx=(6, 0))
        ttk.Label(form, text="Email").grid(row=1, column=0, sticky="w", pady=(4, 0))
        ttk.Entry(form, textvariable=self._email_var).grid(row=1, column=1, sticky="ew", padx=(6, 0), pady=(4, 0))

        actions = ttk.Frame(right)
        actions.grid(row=4, column=0, sticky="ew", pady=(12, 0))
        self._btn_add = ttk.Button(actions, text="Add Signature", command=self._add_signature)
        self._btn_undo = ttk.Button(actions, text="Undo", command=self._undo)
        self._btn_reset = ttk.Button(actions, text="Reset", command=self._reset)
        self._btn_submit = ttk.Button(actions, text="Submit", command=self._submit)
        self._btn_save = ttk.Button(actions, text="Save as…", command=self._save_as)
        for i, btn in enumerate((self._btn_add, self._btn_undo, self._btn_reset, self._btn_submit, self._btn_save)):
            btn.grid(row=i // 2, column=i % 2, sticky="ew", padx=2, pady=2)
        if not session.config.enable_undo:
            self._btn_undo.state(["disabled"])
        ttk.Button(actions, text="Cancel", command=self._cancel).grid(row=2, column=1, sticky="ew", padx=2, pady=2)

        # Status bar
        self._status = tk.Label(self, text="Loading document...", anchor="w", bg="#eeeeee")
        self._status.grid(row=1, column=0, columnspan=2, sticky="ew")

        self.after_idle(self._load)

    # ---------------- Async bridge
    def _run(self, coro):
        self._set_busy(True)
        try:
            return self._loop.run_until_complete(coro)
        finally:
            self._set_busy(False)

    def _set_busy(self, busy: bool) -> None:
        flag = ["disabled"] if busy else ["!disabled"]
        for btn in (self._btn_add, self._btn_reset, self._btn_submit, self._btn_save):
            btn.state(flag)
        if self._session.config.enable_undo:
            self._btn_undo.state(flag)
        self.update_idletasks()

    def show_notice(self, notice: Notice) -> None:
        self._status.config(text=notice.message, fg=_NOTICE_COLORS.get(notice.level, "#333333"))

    # ---------------- Load / preview
    def _load(self):
        snapshot = self._run(self._session.load())
        if snapshot is None:
            self._status.config(text=self._session.error or "Failed to load document", fg=_NOTICE_COLORS[NoticeLevel.ERROR])
            return
        count = self._session.page_count
        self._page_spin.config(to=max(1, count))
        self._page_total.config(text=f"/ {count}")
        targets = self._session.signature_targets
        self._page_index.set(targets[0].page_number if targets else 1)
        self._status.config(text=f"{count} page(s) loaded", fg=_NOTICE_COLORS[NoticeLevel.INFO])
        self._refresh_preview()

    def _refresh_preview(self):
        self._preview.delete("all")
        current = self._session.current
        if current is None:
            return
        idx = max(0, min(int(self._page_index.get()) - 1, self._session.page_count - 1))
        metrics = self._session.page_metrics[idx]
        self._scale = min(self.PREVIEW_MAX_W / metrics.width, self.PREVIEW_MAX_H / metrics.height)
        try:
            pil = page_renderer.render_page(current.data, idx, scale=self._scale)
        except SigningError as ex:
            logger.warning("Preview failed: %s", ex)
            self._bg_img_tk = None
            self._preview.create_rectangle(0, 0, metrics.width * self._scale, metrics.height * self._scale,
                                           fill="white", outline="#666")
        else:
            self._bg_img_tk = ImageTk.PhotoImage(pil)
            self._preview.create_image(0, 0, image=self._bg_img_tk, anchor="nw")
        self._draw_targets(idx, metrics.height)

    def _draw_targets(self, idx: int, page_height: float):
        s = self._scale
        cfg = self._session.config
        for t in self._session.signature_targets:
            if t.page_index != idx:
                continue
            w = t.width if t.width is not None else cfg.default_signature_width
            h = t.height if t.height is not None else cfg.default_signature_height
            x0, y0 = t.x * s, (page_height - t.y - h) * s
            self._preview.create_rectangle(x0, y0, x0 + w * s, y0 + h * s, outline="#0A84FF", width=2, dash=(4, 2))

    def _on_preview_click(self, e):
        if self._session.current is None or self._session.template_id:
            return
        idx = int(self._page_index.get()) - 1
        page_height = self._session.page_metrics[idx].height
        cfg = self._session.config
        pos = RawPosition(
            x=e.x / self._scale,
            y=page_height - e.y / self._scale - cfg.default_signature_height,
            page_number=idx + 1,
        )
        self._session.place_signature(pos, mode=CoordinateMode.POINTS)
        self._refresh_preview()

    # ---------------- Signature pad
    def _on_down(self, e):
        self._session.pad.begin_stroke(e.x, e.y)
        self._line = self._pad_canvas.create_line(
            e.x, e.y, e.x + 1, e.y + 1, fill="black", width=2, capstyle="round", smooth=True, splinesteps=24
        )

    def _on_move(self, e):
        pad = self._session.pad
        pad.add_point(e.x, e.y)
        current = pad.current_stroke
        if self._line is not None and len(current) >= 2:
            self._pad_canvas.coords(self._line, *sum(current, ()))

    def _on_up(self, e):
        self._session.pad.end_stroke()
        self._line = None

    def _clear_pad(self):
        self._pad_canvas.delete("all")
        self._session.pad.clear()

    def _import(self):
        p = filedialog.askopenfilename(parent=self, title="Import signature image",
                                       filetypes=[("Images", "*.png *.gif")])
        if not p:
            return
        with open(p, "rb") as f:
            data = f.read()
        try:
            self._session.pad.import_image(data)
        except SigningError as ex:
            messagebox.showerror(title="Error", message=str(ex), parent=self)
            return
        self._pad_canvas.delete("all")
        self._pad_canvas.create_text(self.PAD_W // 2, self.PAD_H // 2, text="Image loaded.", fill="black")

    # ---------------- Actions
    def _sync_signer(self):
        self._session.signer_name = self._name_var.get()
        self._session.signer_email = self._email_var.get()

    def _add_signature(self):
        self._sync_signer()
        if self._run(self._session.commit_signature()) is not None:
            self._pad_canvas.delete("all")
            self._refresh_preview()

    def _undo(self):
        if self._session.undo() is not None:
            self._refresh_preview()

    def _reset(self):
        if self._session.reset() is not None:
            self._pad_canvas.delete("all")
            self._refresh_preview()

    def _submit(self):
        self._sync_signer()
        self._run(self._session.submit())

    def _save_as(self):
        data = self._session.signed_bytes
        if data is None:
            messagebox.showinfo(title="Save", message="Please add your signature first.", parent=self)
            return
        p = filedialog.asksaveasfilename(
            parent=self, defaultextension=".pdf", filetypes=[("PDF", "*.pdf")],
            initialfile=f"{self._session.config.document_name}_signed.pdf",
        )
        if p:
            with open(p, "wb") as f:
                f.write(data)
            self._status.config(text=f"Saved to {p}", fg=_NOTICE_COLORS[NoticeLevel.SUCCESS])

    def _cancel(self):
        self._session.cancel()
        self._on_close()

    def _on_close(self):
        self._session.close()
        self._loop.close()
        self.destroy()
