"""
Abbreviation table used to expand product descriptions.

Entries are applied top to bottom. Every entry is matched as a whole token,
so an earlier entry can consume text a later one would have matched:
multi-token phrases therefore come before their single-token prefixes
("frut.rojas" before "frut"). Identity entries such as "frutilla" are kept so
the table documents the canonical spelling.
"""

from typing import List, Tuple

ABBREVIATIONS: List[Tuple[str, str]] = [
    # Multi-token phrases
    ("s/az", "sin azucar"),
    ("s/sal", "sin sal"),
    ("frut.rojas", "frutos rojos"),
    ("frut rojo", "frutos rojos"),
    ("frut.rojo", "frutos rojos"),
    ("c/", "con"),

    # Product terms
    ("desc", "descarozada"),
    ("descaro", "descarozada"),
    ("mer", "mermelada"),
    ("merm", "mermelada"),
    ("ara", "arandano"),
    ("lim", "limon"),
    ("zan", "zanahoria"),
    ("tom", "tomate"),
    ("choc", "chocolate"),
    ("nar", "naranja"),
    ("manz", "manzana"),
    ("frut", "frutilla"),
    ("yogu", "yogur"),
    ("yog", "yogur"),
    ("nat", "natural"),
    ("descrem", "descremado"),
    ("ent", "entero"),
    ("gallet", "galleta"),
    ("galle", "galleta"),

    # Spelling corrections
    ("frutilla", "frutilla"),
    ("frutillas", "frutilla"),
    ("frutill", "frutilla"),
    ("frutillla", "frutilla"),
    ("celiac", "celiaco"),
    ("azuc", "azucar"),
    ("edulc", "edulcorante"),
    ("diet", "dietetico"),
    ("ligth", "light"),
    ("lig", "light"),
]
