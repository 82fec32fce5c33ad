"""Rails React GraphQL project generator.

Scaffolds a Rails API + React + GraphQL project from static templates and
rolls the filesystem back if generation fails or is interrupted.
"""

__version__ = "1.0.0"
