# capturekit/cli/__main__.py
import argparse
import logging
import os
import sys
from pathlib import Path

from PySide6.QtCore import QCoreApplication, QEventLoop

from capturekit.core.config import load_config
from capturekit.core.errors import CaptureError
from capturekit.services.coordinator import ImportCoordinator
from capturekit.ui.viewmodels import ImportViewModel


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="capturekit",
        description="Import one image reference (path, file:// or http(s) URL) into storage",
    )
    parser.add_argument("reference", help="image path, file:// URI or http(s) URL")
    parser.add_argument("filename", help="destination file name inside the storage directory")
    parser.add_argument("--storage-dir", type=Path, default=None)
    parser.add_argument("--config", type=Path, default=None, help="JSON config file")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # queued fetch callbacks need a Qt application and an event loop
    _app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    try:
        config = load_config(args.config)
    except CaptureError as e:
        print(f"config error: {e}", file=sys.stderr)
        return 2

    vm = ImportViewModel()
    loop = QEventLoop()
    outcome = {"ok": False}

    def succeeded(filename):
        outcome["ok"] = True
        print(f"imported {filename}")
        loop.quit()

    def failed(*payload):
        error = payload[-1]
        print(f"failed: {error}", file=sys.stderr)
        loop.quit()

    vm.import_succeeded.connect(succeeded)
    vm.fetch_completed.connect(succeeded)
    vm.import_failed.connect(failed)
    vm.fetch_failed.connect(failed)
    vm.fetch_progress.connect(lambda name, n: logging.debug("%s: %d bytes", name, n))

    coordinator = ImportCoordinator(
        event_handler=vm,
        fetch_handler=vm,
        storage_dir=args.storage_dir,
        config=config,
    )
    reference = args.reference
    local = Path(reference).expanduser()
    if "://" not in reference and os.path.exists(local):
        reference = str(local.resolve())

    result = coordinator.handle_send_image(reference, args.filename)
    if result is not None and result.is_async:
        # local imports already reported synchronously; wait for the fetch
        loop.exec()
    return 0 if outcome["ok"] else 1


if __name__ == "__main__":
    sys.exit(main())
