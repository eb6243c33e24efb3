
from .errors import (
    ClassMapError,
    ScanError,
    GoSyntaxError,
    InvalidRenderingOptionError,
    UnknownFormatError,
)

from .model import (
    Field,
    Parameter,
    Method,
    Classifier,
    Alias,
    Registry,
)

from .builder import ModelBuilder, build_model
from .relations import implements_interface, interface_methods, resolve_relationships
from .options import RenderingOption, RenderingOptions
from .renderer import Renderer, render_diagram, renderer_class, write_svg
from .goparser import parse_source, parse_file
from .scanner import ScannerConfig, scan_directories, build_class_diagram

__all__ = [
    "ClassMapError",
    "ScanError",
    "GoSyntaxError",
    "InvalidRenderingOptionError",
    "UnknownFormatError",
    "Field",
    "Parameter",
    "Method",
    "Classifier",
    "Alias",
    "Registry",
    "ModelBuilder",
    "build_model",
    "implements_interface",
    "interface_methods",
    "resolve_relationships",
    "RenderingOption",
    "RenderingOptions",
    "Renderer",
    "render_diagram",
    "renderer_class",
    "write_svg",
    "parse_source",
    "parse_file",
    "ScannerConfig",
    "scan_directories",
    "build_class_diagram",
]

__version__ = "0.1.0"
