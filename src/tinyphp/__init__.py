"""tinyphp: a small PHP-flavoured scripting language with a tree-walking interpreter."""

__version__ = "0.1.0"
