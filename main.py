#!/usr/bin/env python3
"""
OCR & Summarizer - command line entry point.

Usage:
    # Extract text from an image
    python main.py ocr <image> [--lang eng] [--psm 3] [--oem 1]

    # Summarize a text file (or stdin with "-")
    python main.py summarize <file>

    # Start the web service
    python main.py server [--port 8000]
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path


def ocr_cmd(args):
    """Extract text from one image."""
    from app.deps import get_engine_factory
    from core.errors import RecognitionError
    from core.models import OCRSettings
    from core.modules.ocr import process_image
    from pydantic import ValidationError

    try:
        settings = OCRSettings(
            language=args.lang,
            page_seg_mode=args.psm,
            ocr_engine_mode=args.oem,
            whitelist=args.whitelist,
            blacklist=args.blacklist,
            preprocess=args.preprocess,
        )
    except ValidationError as exc:
        for error in exc.errors(include_url=False):
            field = ".".join(str(part) for part in error["loc"])
            print(f"❌ {field}: {error['msg']}", file=sys.stderr)
        sys.exit(1)

    def on_progress(progress: int, message: str) -> None:
        print(f"[{progress:3d}%] {message}", file=sys.stderr)

    async def run():
        return await process_image(
            Path(args.image).read_bytes(),
            on_progress,
            settings,
            engine_factory=get_engine_factory(),
        )

    try:
        output = asyncio.run(run())
    except (RecognitionError, OSError) as exc:
        print(f"❌ {exc}", file=sys.stderr)
        sys.exit(1)

    print(f"Confidence: {output.confidence:.1f}%", file=sys.stderr)
    if args.output:
        Path(args.output).write_text(output.text, encoding="utf-8")
        print(f"✅ Saved: {args.output}", file=sys.stderr)
    else:
        print(output.text)


def summarize_cmd(args):
    """Summarize text through the inference API."""
    from app.deps import get_settings, get_summarizer
    from core.errors import UpstreamError

    text = sys.stdin.read() if args.file == "-" else Path(args.file).read_text(encoding="utf-8")
    if not text.strip():
        print("❌ textToSummarize is required", file=sys.stderr)
        sys.exit(1)
    if not get_settings().huggingface_api_token:
        print("❌ HUGGINGFACE_API_TOKEN is not set", file=sys.stderr)
        sys.exit(1)

    try:
        data = asyncio.run(get_summarizer().summarize(text))
    except UpstreamError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        sys.exit(1)

    if isinstance(data, list) and data and isinstance(data[0], dict) and "summary_text" in data[0]:
        print(data[0]["summary_text"])
    else:
        print(json.dumps(data, ensure_ascii=False, indent=2))


def server_cmd(args):
    """Start the web service."""
    import uvicorn
    from app.deps import get_settings
    from app.main import app

    settings = get_settings()
    port = args.port or settings.port
    print(f"Starting server: http://{settings.host}:{port}")
    uvicorn.run(app, host=settings.host, port=port)


def main():
    parser = argparse.ArgumentParser(
        description="Extract text from images and summarize it",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py ocr scan.png                      # print recognized text
  python main.py ocr scan.png -l deu --psm 6       # German, single text block
  python main.py summarize article.txt             # summarize a text file
  python main.py server --port 8000                # start the web service
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    ocr_parser = subparsers.add_parser("ocr", help="Extract text from an image")
    ocr_parser.add_argument("image", help="Image path")
    ocr_parser.add_argument("-o", "--output", help="Write text to this file")
    ocr_parser.add_argument("-l", "--lang", default="eng", help="Tesseract language (default: eng)")
    ocr_parser.add_argument("--psm", type=int, default=3, help="Page segmentation mode (default: 3)")
    ocr_parser.add_argument("--oem", type=int, default=1, help="OCR engine mode (default: 1)")
    ocr_parser.add_argument("--whitelist", help="Only recognize these characters")
    ocr_parser.add_argument("--blacklist", help="Never recognize these characters")
    ocr_parser.add_argument("--preprocess", action="store_true", help="Grayscale + contrast boost")
    ocr_parser.set_defaults(func=ocr_cmd)

    summarize_parser = subparsers.add_parser("summarize", help="Summarize a text file")
    summarize_parser.add_argument("file", help="Text file path, or - for stdin")
    summarize_parser.set_defaults(func=summarize_cmd)

    server_parser = subparsers.add_parser("server", help="Start the web service")
    server_parser.add_argument("-p", "--port", type=int, default=None, help="Port (default: from settings)")
    server_parser.set_defaults(func=server_cmd)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
