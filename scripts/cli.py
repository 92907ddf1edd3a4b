"""
CLI to count expressions in a video -> JSON.
"""
from __future__ import annotations
import argparse, json, logging, os
from expressions.config import Settings
from expressions.pipeline import analyze_video

def main():
    p = argparse.ArgumentParser()
    p.add_argument("--video", required=True, help="Path to input video")
    p.add_argument("--out", default="output/expressions.json", help="Path to output JSON")
    p.add_argument("--thresholds", default=None, help="Override THRESHOLDS_PATH")
    args = p.parse_args()

    settings = Settings()
    if args.thresholds:
        settings = Settings(THRESHOLDS_PATH=args.thresholds)
    logging.basicConfig(level=settings.LOG_LEVEL)

    result = analyze_video(args.video, settings).model_dump()
    print(json.dumps(result, indent=2, ensure_ascii=False))

    # Also write to file
    os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)
    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(result, f, indent=2, ensure_ascii=False)
    print(f"✅ Analysis written to {args.out}")

if __name__ == "__main__":
    main()
