import os
from tqdm import tqdm
from .formats.ply_3dgs import Ply3DGSFormat
from .formats.spz import SpzFormat
from .processing.coordinates import CoordinateSystem, convert_coordinates
from .utils.utility_functions import debug_print, status_print

_HANDLERS = {
    'ply': Ply3DGSFormat,
    'spz': SpzFormat,
}


def detect_format(path):
    """Maps a file extension to a format name, None when unsupported."""
    ext = os.path.splitext(path)[1].lower()
    for name, handler in _HANDLERS.items():
        if ext in handler.extensions:
            return name
    return None


def get_format_handler(format_name):
    if format_name not in _HANDLERS:
        raise ValueError(f"Unsupported format: {format_name}")
    return _HANDLERS[format_name]()


class Converter:
    def __init__(self, input_path, output_path):
        self.input_path = input_path
        self.output_path = output_path

        self.source_format = detect_format(input_path)
        if not self.source_format:
            raise ValueError(f"Could not detect source format of '{input_path}' (expected .spz or .ply)")
        self.target_format = detect_format(output_path)
        if not self.target_format:
            raise ValueError(f"Could not detect target format of '{output_path}' (expected .spz or .ply)")

        self.cloud = None

    def load_source_only(self):
        """Loads the source file without converting."""
        debug_print(f"[DEBUG] Detected source format: {self.source_format}")
        self.cloud = get_format_handler(self.source_format).read(self.input_path)
        return self.cloud

    def run(self, from_system=None, to_system=None, **kwargs):
        """
        Reads the source, optionally converts coordinates and writes the target.
        Remaining keyword arguments go to the target writer (version,
        compression_level).
        """
        debug_print(f"[DEBUG] Starting conversion: {self.input_path} -> {self.output_path} ({self.target_format})")
        from_system = CoordinateSystem.parse(from_system)
        to_system = CoordinateSystem.parse(to_system)

        with tqdm(total=100, desc="Converting", bar_format='{desc}: {percentage:3.0f}% |{bar}| {n_fmt}/{total_fmt}') as pbar:
            pbar.set_description("Reading Source")
            self.load_source_only()
            pbar.update(40)

            pbar.set_description("Converting Coordinates")
            if from_system != to_system:
                status_print(f"Coordinate conversion: {from_system.name} -> {to_system.name}")
                convert_coordinates(self.cloud, from_system, to_system)
            pbar.update(20)

            pbar.set_description(f"Writing {self.target_format.upper()}")
            get_format_handler(self.target_format).write(self.cloud, self.output_path, **kwargs)
            pbar.update(40)
            pbar.refresh()
            pbar.set_description("Completed")

        status_print(f"Conversion completed: Saved to {self.output_path}")
        return self.cloud
