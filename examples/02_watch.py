"""
Watch the recorder's output directory and upload every finished segment
"""
import asyncio
import logging
import signal

from teraboxpy import TeraboxClient, TeraboxSettings, setup_logging


async def main():
    logging.basicConfig(format="%(asctime)s - %(levelname)s - %(message)s")
    setup_logging(logging.INFO)

    settings = TeraboxSettings.from_env().validate()

    async with TeraboxClient(settings) as terabox:
        watcher = terabox.watcher("videos", min_age=30)

        loop = asyncio.get_running_loop()
        loop.add_signal_handler(signal.SIGINT, watcher.stop)
        loop.add_signal_handler(signal.SIGTERM, watcher.stop)

        summary = await watcher.run(initial_scan=True)
        print(f"{summary.succeeded} uploaded, {summary.failed} failed")


if __name__ == "__main__":
    asyncio.run(main())
