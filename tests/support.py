# tests/support.py
import io
import threading

from PIL import Image

from capturekit.core.errors import FetchIOError


class RecordingHandler:
    """Implements both handler contracts and records every call in order."""

    def __init__(self):
        self.events = []

    def on_import_success(self, filename):
        self.events.append(("import_success", filename))

    def on_import_failure(self, error):
        self.events.append(("import_failure", error))

    def on_fetch_started(self, filename):
        self.events.append(("fetch_started", filename))

    def on_fetch_completed(self, filename):
        self.events.append(("fetch_completed", filename))

    def on_fetch_failed(self, filename, error):
        self.events.append(("fetch_failed", filename, error))

    def names(self):
        return [e[0] for e in self.events]

    def count(self, name):
        return self.names().count(name)


class FakeNetwork:
    """Stands in for HttpStreamOpener: serves registered payloads, records opens."""

    def __init__(self):
        self.payloads = {}
        self.opened = []

    def open_read_stream(self, url):
        self.opened.append(url)
        if url not in self.payloads:
            raise FetchIOError(f"Failed to download {url}: HTTP 404")
        return io.BytesIO(self.payloads[url])


class GatedStream(io.BytesIO):
    """BytesIO whose reads block until the gate is opened."""

    def __init__(self, data, gate: threading.Event):
        super().__init__(data)
        self.gate = gate

    def read(self, *args):
        self.gate.wait(5)
        return super().read(*args)


def make_image(path, size=(64, 48), color="red", fmt=None, orientation=None):
    im = Image.new("RGB", size, color=color)
    params = {}
    if orientation is not None:
        exif = Image.Exif()
        exif[0x0112] = orientation
        params["exif"] = exif.tobytes()
    path.parent.mkdir(parents=True, exist_ok=True)
    im.save(path, format=fmt or "JPEG", **params)
    return path


def image_bytes(size=(32, 32), color="blue"):
    buf = io.BytesIO()
    Image.new("RGB", size, color=color).save(buf, format="PNG")
    return buf.getvalue()
