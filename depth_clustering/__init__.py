"""Range-image projection, ground removal and connected-component labelling for 3D laser scans."""

__version__ = "0.1.0"