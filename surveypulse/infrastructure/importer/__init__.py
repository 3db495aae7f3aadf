from .response_importer import ResponseImporter

__all__ = ["ResponseImporter"]
