import argparse
import os
import sys

# Allow running from a source checkout without installing
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, project_root)

from reasonsketch.export import settle_layout, write_layout, write_static_html
from reasonsketch.models import load_analysis

# === Default file paths ===
analysis_json = os.path.join(project_root, "reasonsketch", "data", "sample_analysis.json")
layout_out = "layout.csv"
html_out = "layout.html"


def main(argv=None):
    parser = argparse.ArgumentParser(description="Settle a reasoning map and export its layout.")
    parser.add_argument("analysis", nargs="?", default=analysis_json)
    parser.add_argument("--csv", default=layout_out)
    parser.add_argument("--html", default=html_out)
    parser.add_argument("--width", type=int, default=800)
    parser.add_argument("--height", type=int, default=600)
    parser.add_argument("--max-frames", type=int, default=1000)
    args = parser.parse_args(argv)

    analysis = load_analysis(args.analysis)
    surface = settle_layout(
        analysis.reasoning_map, args.width, args.height, max_frames=args.max_frames
    )

    df = write_layout(surface, args.csv)
    print(f"✅ Wrote {len(df)} node positions to {args.csv}")

    write_static_html(surface, args.html)
    print(f"✅ Wrote figure to {args.html}")

    skipped = len(surface.graph.skipped_links)
    if skipped:
        print(f"⚠️ Skipped {skipped} link(s) with unknown endpoints")


# === Run export ===
if __name__ == "__main__":
    main()
