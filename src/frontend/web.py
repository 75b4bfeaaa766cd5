from __future__ import annotations
import argparse
from dataclasses import replace
from flask import Flask, request, jsonify, Response
from abbrex.engine import Engine
from abbrex.config import EngineConfig

app = Flask(__name__)
_engine: Engine | None = None


def _get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = Engine(EngineConfig.from_env())
    return _engine


# ---------- API ----------
@app.get("/api/expand")
def api_expand():
    q = request.args.get("q", "", type=str)
    return jsonify({"text": _get_engine().expand(q)})


@app.get("/api/explain")
def api_explain():
    q = request.args.get("q", "", type=str)
    return jsonify({"text": _get_engine().explain(q)})


@app.get("/api/abbreviations")
def api_abbreviations():
    q = request.args.get("q", "", type=str)
    if not q:
        return jsonify([])
    rows = _get_engine().predict_abbreviations(q)
    return jsonify([a.to_dict() for a in rows])


@app.post("/api/examples")
def api_examples():
    body = request.get_json(silent=True) or {}
    context = body.get("context")
    index = body.get("index")
    expansion = body.get("expansion")
    if (
        not isinstance(context, (str, list))
        or not isinstance(index, int) or isinstance(index, bool)
        or not isinstance(expansion, (int, str)) or isinstance(expansion, bool)
    ):
        return jsonify({"ok": False, "error": "expected {context, index, expansion}"}), 400
    ok = _get_engine().add_example(context, index, expansion)
    return jsonify({"ok": ok}), (200 if ok else 422)


@app.post("/api/always")
def api_always():
    body = request.get_json(silent=True) or {}
    word = body.get("word")
    if not isinstance(word, str) or not word:
        return jsonify({"ok": False, "error": "expected {word}"}), 400
    abbr_id = _get_engine().mark_always_abbreviation(word, bool(body.get("always", True)))
    return jsonify({"ok": True, "id": abbr_id})


@app.get("/health")
def health():
    return jsonify({"ok": True})


# ---------- UI ----------
@app.get("/")
def home():
    # A tiny page: CSS variables + minimal JS, no external deps.
    html = r"""
<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8" />
<meta name="viewport" content="width=device-width,initial-scale=1" />
<title>Abbreviation Expander • Flask UI</title>
<style>
:root{
  --bg:#0b0f14;
  --panel:#0f141b;
  --ink:#cfd8e3;
  --muted:#8a94a6;
  --accent:#6ee7ff;
  --accent-2:#22d3ee;
  --border:#1c2530;
}
*{box-sizing:border-box}
body{
  margin:0; background:var(--bg); color:var(--ink);
  font:16px/1.45 system-ui,-apple-system,Segoe UI,Roboto,Ubuntu,"Helvetica Neue",Arial;
}
.container{ max-width:980px; margin:24px auto; padding:0 16px; }
.card{
  background:var(--panel); border:1px solid var(--border);
  border-radius:16px; padding:18px; box-shadow:0 10px 30px rgba(0,0,0,.25);
}
h1{ font-size:20px; margin:0 0 8px 0; letter-spacing:.3px; }
textarea{
  width:100%; min-height:120px; padding:12px 14px; border-radius:12px; border:1px solid var(--border);
  background:#0b1117; color:var(--ink); outline:none; font-size:16px; resize:vertical;
}
textarea:focus{ border-color:var(--accent) }
.controls{ display:flex; gap:12px; align-items:center; margin:12px 0 4px 0; flex-wrap:wrap; }
.btn{
  padding:10px 14px; border-radius:10px; border:1px solid var(--border);
  background:#0b1117; color:var(--ink); cursor:pointer;
}
.btn:hover{ border-color:var(--accent-2) }
.out{
  margin-top:16px; padding:14px; border-radius:12px; border:1px solid var(--border);
  white-space:pre-wrap; min-height:3rem;
}
.row{
  display:grid; grid-template-columns:4rem 10rem 7rem 1fr; gap:10px;
  padding:8px 14px; border-top:1px solid var(--border);
}
.head{ font-weight:600; color:var(--muted) }
.small{ color:var(--muted); font-variant-numeric:tabular-nums }
footer{ margin:26px 0 6px 0; color:var(--muted); font-size:12px; text-align:center; }
</style>
</head>
<body>
  <div class="container">
    <div class="card">
      <h1>Abbreviation Expander</h1>
      <textarea id="q" placeholder="Paste text with abbreviations…" autofocus></textarea>
      <div class="controls">
        <button id="expand" class="btn">Expand</button>
        <button id="explain" class="btn">Explain</button>
        <span id="stats" class="small">Ready.</span>
      </div>
      <div id="out" class="out"></div>
      <div id="abbrs"></div>
    </div>
    <footer>Built with Flask • No external JS/CSS deps</footer>
  </div>
<script>
const $ = (sel) => document.querySelector(sel);
const q = $("#q"), out = $("#out"), abbrs = $("#abbrs"), stats = $("#stats");
const esc = (s) => String(s).replaceAll("&","&amp;").replaceAll("<","&lt;").replaceAll(">","&gt;");

async function run(mode){
  const text = q.value;
  const t0 = performance.now();
  try{
    const [r1, r2] = await Promise.all([
      fetch(`/api/${mode}?q=${encodeURIComponent(text)}`),
      fetch(`/api/abbreviations?q=${encodeURIComponent(text)}`),
    ]);
    if(!r1.ok || !r2.ok) throw new Error(`HTTP ${r1.status}/${r2.status}`);
    const data = await r1.json(), found = await r2.json();
    out.textContent = data.text;
    stats.textContent = `Abbreviations: ${found.length} • ~${Math.round(performance.now() - t0)} ms`;
    abbrs.innerHTML = found.length === 0 ? "" :
      `<div class="row head"><div>#</div><div>Abbreviation</div><div>Confidence</div><div>Expansion</div></div>` +
      found.flatMap(a => a.expansions.map(e =>
        `<div class="row"><div class="small">${a.index}</div><div>${esc(a.value)}</div>` +
        `<div class="small">${e.confidence.toFixed(4)}</div><div>${esc(e.value)}</div></div>`)).join("");
  }catch(e){
    stats.textContent = `Error: ${e.message ?? e}`;
  }
}
$("#expand").addEventListener("click", () => run("expand"));
$("#explain").addEventListener("click", () => run("explain"));
</script>
</body>
</html>
"""
    return Response(html, mimetype="text/html")


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Run Flask UI on top of Engine")
    ap.add_argument("--db", dest="db", default=None)  # DSN: "sqlite:///path" or "memory://"
    ap.add_argument("--width", type=int, default=None)
    ap.add_argument("--threshold", type=float, default=None)
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8000)
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    cfg = EngineConfig.from_env()
    if args.db:
        cfg = replace(cfg, store_dsn=args.db)
    if args.width is not None:
        cfg = replace(cfg, context_width=args.width)
    if args.threshold is not None:
        cfg = replace(cfg, threshold=args.threshold)

    global _engine
    _engine = Engine(cfg, verbose=args.verbose)
    try:
        app.run(host=args.host, port=args.port, debug=args.verbose)
    finally:
        _engine.shutdown()
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
