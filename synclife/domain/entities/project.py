"""
Project Entity - Representación de un proyecto del dominio.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class Project:
    """
    Entidad de Proyecto.

    `logo` puede ser URL, emoji o imagen embebida (data URL).
    """

    id: str = ""
    name: str = ""
    logo: str = ""
    color: str = "blue"

    def to_dict(self) -> dict[str, Any]:
        """Convierte a diccionario para serialización."""
        return {
            "id": self.id,
            "name": self.name,
            "logo": self.logo,
            "color": self.color,
        }
