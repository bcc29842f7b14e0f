"""
Tilerun - Tile-Reveal Roguelike Run Engine

A deterministic, seedable engine for a turn-based hybrid of Minesweeper-style
tile revelation and a roguelike run. The engine provides:
- Procedural board generation per level
- Reveal, combat and turn resolution
- Probabilistic clue generation
- Spell, item, upgrade and shop economy rules
- Substitutable opponent policies
"""

__version__ = "0.1.0"
