# app.py
# CustomTkinter GUI for the abbreviation expander (dark theme).
# - Open a SQLite statistics file, or start with an empty in-memory store.
# - Expand / Explain run on a background thread (keeps UI responsive).
# - Teach the engine: select the abbreviation word, type its expansion, "Add example".

from __future__ import annotations
import threading
from typing import Callable, Optional

import tkinter.filedialog as fd
import tkinter.messagebox as mb
import customtkinter as ctk

# Project imports (ensure PYTHONPATH=src)
from abbrex.config import EngineConfig
from abbrex.engine import Engine


# -------------------- small helpers --------------------

def shorten_path(p: str, max_chars: int = 60) -> str:
    """Shorten long paths neatly for labels."""
    if len(p) <= max_chars:
        return p
    keep = max_chars // 2 - 3
    return p[:keep] + "..." + p[-keep:]


# -------------------- main app --------------------

class ExpanderApp(ctk.CTk):
    """Dark-themed GUI that opens an expansion store and runs the engine on typed text."""

    def __init__(self) -> None:
        super().__init__()

        ctk.set_appearance_mode("dark")
        ctk.set_default_color_theme("blue")

        self.title("Abbreviation Expander")
        self.geometry("900x650")
        self.minsize(820, 560)

        # State
        self._engine: Engine = Engine(EngineConfig())
        self._worker: Optional[threading.Thread] = None

        self.font_title = ctk.CTkFont(size=18, weight="bold")
        self.font_label = ctk.CTkFont(size=13)
        self.font_mono = ctk.CTkFont(family="Cascadia Mono, Menlo, Consolas, Courier New", size=13)

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)  # input
        self.grid_rowconfigure(4, weight=1)  # output
        self.grid_rowconfigure(5, weight=1)  # log

        self._build_source_bar()
        self._build_input()
        self._build_actions()
        self._build_training()
        self._build_output()
        self._build_log()

        self._set_status("Ready (in-memory store)")
        self.protocol("WM_DELETE_WINDOW", self._on_close)

    # --------- UI sections ---------

    def _build_source_bar(self) -> None:
        bar = ctk.CTkFrame(self, corner_radius=10)
        bar.grid(row=0, column=0, sticky="ew", padx=12, pady=(12, 6))
        bar.grid_columnconfigure(2, weight=1)

        ctk.CTkButton(bar, text="Open SQLite", command=self._choose_db).grid(
            row=0, column=0, padx=(12, 6), pady=10
        )
        ctk.CTkButton(bar, text="New in-memory", command=self._use_memory).grid(
            row=0, column=1, padx=(0, 6), pady=10
        )
        self.lbl_source = ctk.CTkLabel(bar, text="memory://", anchor="w", font=self.font_label)
        self.lbl_source.grid(row=0, column=2, sticky="ew", padx=6, pady=10)

        self.lbl_status = ctk.CTkLabel(bar, text="Status: —", anchor="e")
        self.lbl_status.grid(row=0, column=3, sticky="e", padx=12, pady=10)

    def _build_input(self) -> None:
        ctk.CTkLabel(self, text="Text", font=self.font_label).grid(
            row=1, column=0, sticky="w", padx=24, pady=(6, 0)
        )
        self.txt_input = ctk.CTkTextbox(self, wrap="word", font=self.font_mono)
        self.txt_input.grid(row=2, column=0, sticky="nsew", padx=12, pady=6)

    def _build_actions(self) -> None:
        box = ctk.CTkFrame(self, corner_radius=10)
        box.grid(row=3, column=0, sticky="ew", padx=12, pady=6)
        ctk.CTkButton(box, text="Expand", command=lambda: self._run("expand")).grid(
            row=0, column=0, padx=(12, 6), pady=10
        )
        ctk.CTkButton(box, text="Explain", command=lambda: self._run("explain")).grid(
            row=0, column=1, padx=6, pady=10
        )

    def _build_training(self) -> None:
        box = ctk.CTkFrame(self, corner_radius=10)
        box.grid(row=6, column=0, sticky="ew", padx=12, pady=6)
        box.grid_columnconfigure(1, weight=1)
        ctk.CTkLabel(box, text="Expansion of selected word:", font=self.font_label).grid(
            row=0, column=0, padx=12, pady=10
        )
        self.entry_expansion = ctk.CTkEntry(box, placeholder_text="e.g. do it yourself")
        self.entry_expansion.grid(row=0, column=1, sticky="ew", padx=6, pady=10)
        ctk.CTkButton(box, text="Add example", command=self._add_example).grid(
            row=0, column=2, padx=(6, 12), pady=10
        )

    def _build_output(self) -> None:
        self.txt_output = ctk.CTkTextbox(self, wrap="word", font=self.font_mono)
        self.txt_output.grid(row=4, column=0, sticky="nsew", padx=12, pady=6)
        self.txt_output.configure(state="disabled")

    def _build_log(self) -> None:
        self.txt_log = ctk.CTkTextbox(self, height=110, wrap="word", font=ctk.CTkFont(size=12))
        self.txt_log.grid(row=5, column=0, sticky="nsew", padx=12, pady=6)
        self._log("GUI ready. Type text, or open a trained SQLite store.")

    # --------- store selection ---------

    def _choose_db(self) -> None:
        path = fd.askopenfilename(
            title="Choose statistics database",
            filetypes=[("SQLite", "*.sqlite *.db"), ("All files", "*.*")],
        )
        if path:
            self._swap_engine(f"sqlite:///{path}")

    def _use_memory(self) -> None:
        self._swap_engine("memory://")

    def _swap_engine(self, dsn: str) -> None:
        if self._worker and self._worker.is_alive():
            mb.showinfo("Busy", "Still processing. Please wait.")
            return
        try:
            engine = Engine(EngineConfig(store_dsn=dsn))
        except Exception as exc:
            self._log(f"ERROR: {exc!r}")
            mb.showerror("Store error", f"Could not open {dsn}.\nSee event log for details.")
            return
        self._engine.shutdown()
        self._engine = engine
        self.lbl_source.configure(text=shorten_path(dsn))
        self._set_status("Store ready")
        self._log(f"Opened {dsn}")

    # --------- processing (threaded) ---------

    def _run(self, mode: str) -> None:
        text = self.txt_input.get("1.0", "end-1c")
        fn: Callable[[str], str] = self._engine.expand if mode == "expand" else self._engine.explain
        self._start(mode, lambda: fn(text), self._set_output)

    def _add_example(self) -> None:
        expansion = self.entry_expansion.get().strip()
        try:
            first = self.txt_input.index("sel.first")
        except Exception:
            mb.showinfo("Add example", "Select the abbreviation in the text first.")
            return
        if not expansion:
            mb.showinfo("Add example", "Type the expansion of the selected word.")
            return
        text = self.txt_input.get("1.0", "end-1c")
        # a selection starting mid-word still picks that word
        offset = len(self.txt_input.get("1.0", first))
        index = self._engine.tokenizer.word_index_at(text, offset)
        self._start(
            "add example",
            lambda: self._engine.add_example(text, index, expansion),
            lambda ok: self._log("Example added." if ok else "Example rejected."),
        )

    def _start(self, label: str, work: Callable, done: Callable) -> None:
        if self._worker and self._worker.is_alive():
            mb.showinfo("Busy", "Still processing. Please wait.")
            return
        self._set_status(f"Running {label}…")

        def worker() -> None:
            try:
                result = work()
            except Exception as exc:
                self.after(0, lambda e=exc: self._on_error(e))
                return
            self.after(0, lambda: (done(result), self._set_status("Done")))

        self._worker = threading.Thread(target=worker, daemon=True)
        self._worker.start()

    def _on_error(self, exc: Exception) -> None:
        self._set_status("Error")
        self._log(f"ERROR: {exc!r}")

    # --------- misc UI helpers ---------

    def _set_status(self, text: str) -> None:
        self.lbl_status.configure(text=f"Status: {text}")

    def _set_output(self, text: str) -> None:
        self.txt_output.configure(state="normal")
        self.txt_output.delete("0.0", "end")
        if text:
            self.txt_output.insert("end", text)
        self.txt_output.configure(state="disabled")

    def _log(self, msg: str) -> None:
        self.txt_log.insert("end", msg + "\n")
        self.txt_log.see("end")

    # --------- lifecycle ---------

    def _on_close(self) -> None:
        self._engine.shutdown()
        self.destroy()


if __name__ == "__main__":
    app = ExpanderApp()
    app.mainloop()
