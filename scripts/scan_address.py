"""Scan an address's recent transactions for accounts created during them.

Usage:
    PYTHONPATH=src python scripts/scan_address.py <address> [limit]
"""

import asyncio
import logging
import sys

from pdatrace.config import settings

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s - %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


async def main(address: str, limit: int) -> None:
    from pdatrace.container import Container

    container = Container()
    async with container.http_client():
        scanner = container.scanner()
        report = await scanner.scan(address, limit=limit)

    print(f"{report.address}: {len(report.results)} TXs scanned, {report.skipped_failed} failed skipped")
    for result in report.results:
        for record in result.created:
            print(f"  {result.signature[:16]}...  {record.address}  {record.tag}  (owner {record.owner})")
    for error in report.errors:
        print(f"  ERROR {error.signature[:16]}...  {error.error_type.value}: {error.message}")
    if report.page_error:
        print(f"Stopped early: {report.page_error}")
    if report.cursor:
        print(f"Resume with before={report.cursor}")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    asyncio.run(main(sys.argv[1], int(sys.argv[2]) if len(sys.argv) > 2 else 100))
