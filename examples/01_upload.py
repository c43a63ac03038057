"""
Upload recording segments to TeraBox
"""
import asyncio
import logging

from teraboxpy import TeraboxClient, TeraboxSettings, setup_logging


async def main():
    logging.basicConfig(format="%(asctime)s - %(levelname)s - %(message)s")
    setup_logging(logging.INFO)

    # TERABOX_JSTOKEN / TERABOX_COOKIE / TERABOX_BDSTOKEN from the environment
    settings = TeraboxSettings.from_env().validate()

    async with TeraboxClient(settings) as terabox:

        # Single file, local copy kept
        result = await terabox.upload("videos/2024-01-01-00-00-00.mkv")
        print(f"{result.target.file_name}: {result.state.value}")
        if result.rapid_upload:
            print("Already on the server, no bytes sent")

        # Upload with progress callback
        def on_progress(progress):
            print(f"Piece {progress.uploaded_pieces}/{progress.total_pieces} ({progress.percentage:.1f}%)")

        async with TeraboxClient(settings, progress_callback=on_progress) as tracked:
            await tracked.upload("videos/2024-01-01-01-00-00.mkv")

        # Batch, deleting each file once it is safely uploaded
        summary = await terabox.upload_many(
            ["videos/2024-01-01-02-00-00.mkv", "videos/2024-01-01-03-00-00.mkv"],
            delete=True
        )
        print(f"{summary.succeeded}/{summary.total} uploaded")

        # Quota
        quota = await terabox.get_quota()
        if quota.is_known:
            print(f"Free: {quota.free_bytes:,} bytes")


if __name__ == "__main__":
    asyncio.run(main())
