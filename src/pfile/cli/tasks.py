"""Command line tasks for pfile.

Run as `pfile <task>` once installed, e.g.

    pfile upload ~/Pictures/trip --recursive
    pfile list --term vac
    pfile export --output-dir ~/backups
"""

import asyncio
import os
from pathlib import Path

import structlog
from dotenv import load_dotenv
from invoke import Collection, Context, Program, task

from pfile import __version__
from pfile.errors import PFileError
from pfile.models.key import KEY_EXPORT_FILENAME
from pfile.services.photo_store import PhotoStore, create_photo_store, is_image_file

logger = structlog.get_logger()


def _open_store(env_file: str, data_dir: str | None) -> PhotoStore:
    if os.path.exists(env_file):
        logger.info(f"Loading environment variables from {env_file}")
        load_dotenv(dotenv_path=env_file)
    return create_photo_store(data_dir)


def _find_images(directory: str, recursive: bool) -> list[Path]:
    root = Path(directory)
    candidates = root.rglob("*") if recursive else root.iterdir()
    return sorted(p for p in candidates if p.is_file() and is_image_file(p.name))


@task
def upload(
    c: Context,
    directory: str,
    recursive: bool = False,
    dry_run: bool = False,
    env_file: str = ".env",
    data_dir: str | None = None,
):
    """
    Encrypt and store every image in a directory, one file at a time.

    Args:
        directory: Directory containing images.
        recursive: Search subdirectories too.
        dry_run: List the files that would be stored without storing them.
        env_file: Environment file to load first.
        data_dir: Override PFILE_DATA_DIR.
    """
    if not os.path.isdir(directory):
        logger.error(f"Directory not found: {directory}")
        return

    image_files = _find_images(directory, recursive)
    if not image_files:
        logger.warning("No image files found to process.")
        return

    if dry_run:
        print("\n--- Dry Run Mode: Files to be stored ---")
        for file_path in image_files:
            print(f"- {file_path}")
        print("--- End of Dry Run ---")
        return

    try:
        store = _open_store(env_file, data_dir)
    except PFileError as e:
        print(e.user_message)
        return

    def report(current_file: str, completed: int, total: int, stage: str) -> None:
        if stage != "processing":
            print(f"[{completed}/{total}] {current_file}: {stage}")

    summary = asyncio.run(store.add_files(image_files, progress_callback=report))
    for result in summary["results"]:
        if not result["success"]:
            print(f"  failed: {result['filename']} ({result['error']})")

    logger.info(
        "Batch upload finished.",
        successful=summary["successful"],
        failed=summary["failed"],
        total=summary["total"],
    )
    print(f"\nBatch upload complete. Successful: {summary['successful']}, Failed: {summary['failed']}")
    print(store.storage_usage().label())


@task(name="list")
def list_photos(c: Context, term: str = "", env_file: str = ".env", data_dir: str | None = None):
    """
    List stored photos in upload order, optionally filtered by name.
    """
    try:
        store = _open_store(env_file, data_dir)
    except PFileError as e:
        print(e.user_message)
        return
    photos = store.search(term)
    for photo in photos:
        print(f"{photo.id}  {photo.get_display_date()}  {photo.size:>12,}  {photo.name}")
    print(f"\n{len(photos)} photo(s). {store.storage_usage().label()}")


@task
def delete(c: Context, photo_id: str, env_file: str = ".env", data_dir: str | None = None):
    """Delete one photo by id."""
    try:
        store = _open_store(env_file, data_dir)
        deleted = store.delete_photo(photo_id)
    except PFileError as e:
        print(e.user_message)
        return
    if deleted:
        print(f"Deleted {photo_id}")
    else:
        print(f"No photo with id {photo_id}")


@task
def download(
    c: Context, photo_id: str, output_dir: str = ".", env_file: str = ".env", data_dir: str | None = None
):
    """Decrypt one photo into output_dir under its original name."""
    try:
        store = _open_store(env_file, data_dir)
        name, _, data = store.download_photo(photo_id)
    except PFileError as e:
        print(e.user_message)
        return
    target = Path(output_dir) / Path(name).name
    target.write_bytes(data)
    print(f"Saved {target}")


@task
def export(c: Context, output_dir: str = ".", env_file: str = ".env", data_dir: str | None = None):
    """Write all decrypted photos into a dated zip archive."""
    try:
        store = _open_store(env_file, data_dir)
        result = store.export_all()
    except PFileError as e:
        print(e.user_message)
        return
    target = Path(output_dir) / result.filename
    target.write_bytes(result.archive)
    print(f"Exported {result.exported_count} photos to {target}")
    if result.failed_count:
        print(f"{result.failed_count} photo(s) could not be decrypted and were skipped")


@task
def export_key(
    c: Context, output: str = KEY_EXPORT_FILENAME, env_file: str = ".env", data_dir: str | None = None
):
    """Save the encryption key for safekeeping."""
    try:
        store = _open_store(env_file, data_dir)
        bundle = store.export_key()
    except PFileError as e:
        print(e.user_message)
        return
    Path(output).write_text(bundle.to_json(), encoding="utf-8")
    os.chmod(output, 0o600)
    print(f"Encryption key exported to {output}")
    print(bundle.warning)


@task
def import_key(c: Context, path: str, force: bool = False, env_file: str = ".env", data_dir: str | None = None):
    """Restore a previously exported encryption key."""
    try:
        store = _open_store(env_file, data_dir)
        bundle = store.import_key(Path(path).read_text(encoding="utf-8"), force=force)
    except PFileError as e:
        print(e.user_message)
        return
    print(f"Encryption key imported ({bundle.method})")


namespace = Collection(upload, list_photos, delete, download, export, export_key, import_key)
program = Program(namespace=namespace, name="pfile", binary="pfile", version=__version__)
