"""recipe_stats - Auswertung von Rezept-Lieferdaten.

Dieses Paket liest ein JSON-Array von Lieferungen im Streaming-Verfahren,
aggregiert Kennzahlen in einem einzigen Durchlauf und rendert einen Report
(JSON, Markdown, CSV).
"""

__all__ = ["__version__"]

__version__ = "0.2.0"
