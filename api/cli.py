#!/usr/bin/env python3
"""CLI for rendering certificates without the HTTP server.

Usage:
    python -m cli <command> [options]

Commands:
    render   Render a certificate to a PDF or JPEG file
    preview  Render a PNG preview to a file
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _request_payload(args: argparse.Namespace) -> dict:
    return {
        "recipient_name": args.name,
        "certificate_number": args.number,
        "award_rera_number": args.rera,
        "professional": args.profession,
        "template_url": args.template,
    }


def cmd_render(args: argparse.Namespace) -> int:
    """Render a certificate file and write it to disk."""
    from core.http_client import close_http_client
    from rendering.errors import RenderError
    from schemas import RenderRequest
    from services.certificates_service import render_certificate_file

    request = RenderRequest.model_validate(
        {**_request_payload(args), "format": args.format}
    )

    async def _run():
        try:
            return await render_certificate_file(request)
        finally:
            await close_http_client()

    try:
        rendered = asyncio.run(_run())
    except RenderError as e:
        logger.error(str(e))
        return 1

    output = Path(args.output or rendered.filename)
    output.write_bytes(rendered.content)
    logger.info(f"Wrote {len(rendered.content)} bytes to {output}")
    return 0


def cmd_preview(args: argparse.Namespace) -> int:
    """Render a PNG preview and write the decoded image to disk."""
    from core.http_client import close_http_client
    from rendering.errors import RenderError
    from rendering.images import decode_data_url
    from schemas import PreviewRequest
    from services.certificates_service import generate_certificate_preview

    request = PreviewRequest.model_validate(_request_payload(args))

    async def _run():
        try:
            return await generate_certificate_preview(request)
        finally:
            await close_http_client()

    try:
        preview = asyncio.run(_run())
    except RenderError as e:
        logger.error(str(e))
        return 1

    content = decode_data_url(preview.data_url)
    output = Path(args.output or preview.filename)
    output.write_bytes(content)
    logger.info(f"Wrote {len(content)} bytes to {output}")
    return 0


def _add_certificate_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--name", help="Recipient name")
    parser.add_argument("--number", help="Certificate number")
    parser.add_argument("--rera", help="Awardee RERA number")
    parser.add_argument("--profession", help="Awardee profession")
    parser.add_argument("--template", help="Background template image URL")
    parser.add_argument(
        "--output", help="Output file (defaults to the download filename)"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Certificate renderer CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    render_parser = subparsers.add_parser(
        "render",
        help="Render a certificate to a PDF or JPEG file",
    )
    _add_certificate_arguments(render_parser)
    render_parser.add_argument(
        "--format", choices=["pdf", "jpeg"], default="pdf", help="Output format"
    )

    preview_parser = subparsers.add_parser(
        "preview",
        help="Render a PNG preview to a file",
    )
    _add_certificate_arguments(preview_parser)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "render":
        return cmd_render(args)
    elif args.command == "preview":
        return cmd_preview(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
