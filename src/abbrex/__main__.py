from __future__ import annotations
import argparse, json, os, sys
from dataclasses import replace

from .config import EngineConfig
from .engine import Engine

MODES = ("expand", "explain", "predict")


def _supports_color() -> bool:
    return sys.stdout.isatty() and os.environ.get("NO_COLOR", "") == ""

CSI = "\033["
def _c(text: str, code: str) -> str:
    if not _supports_color(): return text
    return f"{CSI}{code}m{text}{CSI}0m"


def _expansion_ref(raw: str):
    # digits -> id of an existing expansion, anything else -> expansion text
    return int(raw) if raw.isdigit() else raw


def _print_table(abbrs) -> None:
    if not abbrs:
        print(_c("(no abbreviations)", "2;37")); return
    print(_c("#  Index  Abbreviation     Confidence  Expansion", "1;37"))
    for i, a in enumerate(abbrs, 1):
        if a.context is not None:
            print(_c("   context: ", "2;37") + a.context.render(highlight=_supports_color()))
        for e in a.expansions:
            print(f"{i:<2} {a.index:<6} {a.value:<16} {e.confidence:<11.4f} {e.value}")


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Abbreviation expander CLI (Engine-backed)")
    p.add_argument("--db", default=None, help='Store DSN: "sqlite:///path" or "memory://"')
    p.add_argument("--mode", choices=MODES, default="expand")
    p.add_argument("--q", default=None, help="Single text to process once")
    p.add_argument("--repl", action="store_true", help="Interactive loop")
    p.add_argument("--json", action="store_true", help="Emit JSON")
    p.add_argument("--train", default=None, help="Context text of one training example")
    p.add_argument("--index", type=int, default=None, help="Word index of the abbreviation in --train")
    p.add_argument("--expansion", default=None, help="Expansion text, or id of an existing expansion")
    p.add_argument("--always", action="append", default=[], metavar="WORD",
                   help="Mark WORD as always an abbreviation (repeatable)")
    p.add_argument("--width", type=int, default=None, help="Context half-width")
    p.add_argument("--threshold", type=float, default=None)
    p.add_argument("--word-chars", default=None, help='Regex class body, e.g. "A-Za-z_"')
    p.add_argument("--prior", action="store_true", help="Weight normalization by example counts")
    p.add_argument("--verbose", action="store_true")
    args = p.parse_args(argv)

    if args.train is not None and (args.index is None or args.expansion is None):
        p.error("--train requires --index and --expansion")

    cfg = EngineConfig.from_env()
    overrides = {
        "store_dsn": args.db,
        "context_width": args.width,
        "threshold": args.threshold,
        "word_chars": args.word_chars,
        "prior_weighting": True if args.prior else None,
    }
    cfg = replace(cfg, **{k: v for k, v in overrides.items() if v is not None})

    eng = Engine(cfg, verbose=args.verbose)
    try:
        for word in args.always:
            eng.mark_always_abbreviation(word)

        if args.train is not None:
            ok = eng.add_example(args.train, args.index, _expansion_ref(args.expansion))
            if args.json:
                print(json.dumps({"ok": ok}))
            else:
                print("example added" if ok else "example rejected")
            if not ok:
                return 1

        def run(text: str) -> None:
            if args.mode == "predict":
                abbrs = eng.predict_abbreviations(text)
                if args.json:
                    print(json.dumps([a.to_dict() for a in abbrs], ensure_ascii=False, indent=2))
                else:
                    _print_table(abbrs)
                return
            out = eng.expand(text) if args.mode == "expand" else eng.explain(text)
            print(json.dumps({"text": out}, ensure_ascii=False) if args.json else out)

        if args.q is not None:
            run(args.q)

        if args.repl:
            print("Type text (empty line to exit).")
            while True:
                try:
                    q = input("> ")
                except (EOFError, KeyboardInterrupt):
                    print(); break
                if not q.strip():
                    break
                run(q)

        return 0
    finally:
        eng.shutdown()


if __name__ == "__main__":
    sys.exit(main())
