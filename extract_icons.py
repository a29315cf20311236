#!/usr/bin/env python3
"""
extract_icons.py <module.exe|dll>... [--out DIR] [--backend auto|pefile|win32] [--png] [--config F]

- Rebuilds every RT_GROUP_ICON of each module as a standalone .ico
  (<stem>_<index>.ico, index = resource enumeration order; a repeated stem
  becomes <stem>-2, <stem>-3 ...).
- --png also writes the largest frame of each icon as <stem>_<index>.png.
- Writes <stem>_icons.json with per-icon entry geometry unless --no-manifest.
- A module that fails is reported and skipped; exit code 1 if any failed.

Settings precedence: flags > --config YAML > ICONEXTRACT_BACKEND / ICONEXTRACT_OUT > defaults.
"""

import sys, json, argparse, pathlib

from iconextract import IconExtractError, open_icons
from iconextract.config import Config, ConfigError, from_env, load_file, overlay, validate


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Extract icon groups from PE modules as .ico files")
    ap.add_argument("files", nargs="+", help="EXE/DLL files")
    ap.add_argument("--out", default=None, help="output directory (env ICONEXTRACT_OUT)")
    ap.add_argument("--backend", default=None, help="auto, pefile or win32 (env ICONEXTRACT_BACKEND)")
    ap.add_argument("--png", action="store_true", default=None, help="also write PNG renderings")
    ap.add_argument("--no-manifest", dest="manifest", action="store_false", default=None)
    ap.add_argument("--config", help="YAML file with backend/out/png/manifest/quiet")
    ap.add_argument("--quiet", action="store_true", default=None)
    return ap.parse_args(argv)


def resolve_config(args) -> Config:
    cfg = from_env()
    if args.config:
        cfg = load_file(args.config, cfg)
    flags = {k: getattr(args, k) for k in ("backend", "out", "png", "manifest", "quiet")}
    return validate(overlay(cfg, {k: v for k, v in flags.items() if v is not None}))


def output_stem(path: pathlib.Path, used: set) -> str:
    """<stem>, or <stem>-2, <stem>-3 ... when an earlier input had the same stem."""
    stem, n = path.stem, 1
    while stem.lower() in used:
        n += 1
        stem = f"{path.stem}-{n}"
    used.add(stem.lower())
    return stem


def extract_one(path: pathlib.Path, cfg: Config, outdir: pathlib.Path, stem: str) -> dict:
    store = open_icons(path, cfg.backend)
    # decode everything first so a failing icon leaves no partial output behind
    renders = store.all_icons() if cfg.png else [None] * store.count()
    icons = []
    for i, img in enumerate(renders):
        ico = store.save(i, outdir / f"{stem}_{i}.ico")
        item = {
            "index": i, "file": ico.name, "size": len(store.icon_data(i)),
            "entries": [{"width": e.width or 256, "height": e.height or 256,
                         "bit_count": e.bit_count, "bytes_in_res": e.bytes_in_res}
                        for e in store.entries(i)],
        }
        if img is not None:
            png = outdir / f"{stem}_{i}.png"
            img.save(png, format="PNG")
            item["png"] = png.name
        icons.append(item)
        if not cfg.quiet:
            print(f"[icons] {path.name}#{i}: {len(item['entries'])} image(s) -> {ico.name}")
    info = {"source": str(path), "source_path": store.source_path, "count": store.count(), "icons": icons}
    if cfg.manifest:
        with open(outdir / f"{stem}_icons.json", "w", encoding="utf-8") as f:
            json.dump(info, f, indent=2)
    return info


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        cfg = resolve_config(args)
    except ConfigError as e:
        print(f"[!] config: {e}")
        return 2

    outdir = pathlib.Path(cfg.out).resolve()
    outdir.mkdir(parents=True, exist_ok=True)

    failed = 0
    used = set()
    total = 0
    for name in args.files:
        path = pathlib.Path(name)
        try:
            info = extract_one(path, cfg, outdir, output_stem(path, used))
        except IconExtractError as e:
            failed += 1
            print(f"[!] {path}: icons could not be extracted: {e}")
            continue
        total += info["count"]
        print(f"[✓] {path.name}: {info['count']} icon(s) from {info['source_path']}")

    print(f"[icons] Done. {total} icon(s) written to {outdir}; {failed} module(s) failed.")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
