"""xfmrsim package.

Важно: пакет не должен иметь побочных эффектов при импорте.
Поэтому здесь нет eager-import'ов тяжёлых модулей (интегратор/исследование перегрузки/конфиги).

Импортируй нужное напрямую:
- from xfmrsim.integrator import ThermalIntegrator
- from xfmrsim.config import TransformerConfig
"""

from __future__ import annotations

__all__: list[str] = []
