# notas/especificacao.py — Conceitos e especificação do cálculo da média
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Union

import numpy as np

from .config import PESOS_METAS_PADRAO, VALORES_CONCEITOS_PADRAO
from .erros import ErroValidacao


class Conceito(str, Enum):
    """Conceito qualitativo atribuído a uma meta (MANA < MPA < MA)."""
    MANA = "MANA"
    MPA = "MPA"
    MA = "MA"

    @classmethod
    def de_texto(cls, valor: Union[str, "Conceito"]) -> "Conceito":
        if isinstance(valor, Conceito):
            return valor
        token = str(valor).strip() if valor is not None else ""
        try:
            return cls(token)
        except ValueError:
            raise ErroValidacao(f"Invalid grade: '{valor}'") from None


def arredondar_uma_casa(x: float) -> float:
    # half-up na primeira casa decimal (round() do Python arredonda para o par)
    return float(Decimal(str(x)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class EspecificacaoDoCalculoDaMedia:
    """
    Pesos das metas e valores dos conceitos.

    Imutável depois de construída: as tabelas ficam expostas apenas como
    MappingProxyType e não há métodos de alteração.
    """

    __slots__ = ("_pesos_das_metas", "_pesos_dos_conceitos")

    def __init__(self, pesos_das_metas: Mapping[str, float], pesos_dos_conceitos: Mapping[str, float]):
        metas = {}
        for meta, peso in pesos_das_metas.items():
            peso = float(peso)
            if not peso > 0:
                raise ErroValidacao(f"Peso da meta '{meta}' deve ser positivo (recebido {peso})")
            metas[str(meta)] = peso
        if not metas:
            raise ErroValidacao("A especificação precisa de pelo menos uma meta")

        conceitos = {}
        for conceito, valor in pesos_dos_conceitos.items():
            conceitos[Conceito.de_texto(conceito)] = float(valor)
        faltando = [c.value for c in Conceito if c not in conceitos]
        if faltando:
            raise ErroValidacao(f"Valores ausentes para os conceitos: {faltando}")

        object.__setattr__(self, "_pesos_das_metas", MappingProxyType(metas))
        object.__setattr__(self, "_pesos_dos_conceitos", MappingProxyType(conceitos))

    def __setattr__(self, nome, valor):
        raise AttributeError("EspecificacaoDoCalculoDaMedia é imutável")

    @property
    def pesos_das_metas(self) -> Mapping[str, float]:
        return self._pesos_das_metas

    @property
    def pesos_dos_conceitos(self) -> Mapping[Conceito, float]:
        return self._pesos_dos_conceitos

    @property
    def metas(self) -> tuple:
        return tuple(self._pesos_das_metas)

    def peso(self, meta: str) -> float:
        return self._pesos_das_metas[meta]

    def valor(self, conceito: Union[str, Conceito]) -> float:
        return self._pesos_dos_conceitos[Conceito.de_texto(conceito)]

    def calc(
        self,
        notas_por_meta: Mapping[str, Union[str, Conceito]],
        metas_exigidas: Optional[Iterable[str]] = None,
    ) -> Optional[float]:
        """
        Média ponderada Σ(peso·valor)/Σ(peso) sobre as metas presentes que a
        especificação conhece. Metas desconhecidas são ignoradas.

        Retorna None (indeterminado) se nenhuma meta conhecida estiver presente
        ou se faltar alguma das `metas_exigidas` (quem chama decide quais são).
        """
        if metas_exigidas is not None:
            if any(meta not in notas_por_meta for meta in metas_exigidas):
                return None

        conhecidas = [m for m in notas_por_meta if m in self._pesos_das_metas]
        if not conhecidas:
            return None

        pesos = np.array([self._pesos_das_metas[m] for m in conhecidas], dtype=float)
        valores = np.array([self.valor(notas_por_meta[m]) for m in conhecidas], dtype=float)
        return float(np.dot(pesos, valores) / pesos.sum())

    def para_dict(self) -> Dict[str, Dict[str, float]]:
        return {
            "pesosDasMetas": dict(self._pesos_das_metas),
            "pesosDosConceitos": {c.value: v for c, v in self._pesos_dos_conceitos.items()},
        }

    @classmethod
    def de_dict(cls, dados: Mapping) -> "EspecificacaoDoCalculoDaMedia":
        return cls(dados.get("pesosDasMetas") or {}, dados.get("pesosDosConceitos") or {})

    def __eq__(self, outra):
        if not isinstance(outra, EspecificacaoDoCalculoDaMedia):
            return NotImplemented
        return (
            dict(self._pesos_das_metas) == dict(outra._pesos_das_metas)
            and dict(self._pesos_dos_conceitos) == dict(outra._pesos_dos_conceitos)
        )

    def __hash__(self):
        return hash((tuple(self._pesos_das_metas.items()), tuple(self._pesos_dos_conceitos.items())))

    def __repr__(self):
        return f"EspecificacaoDoCalculoDaMedia(metas={list(self.metas)})"


ESPECIFICACAO_PADRAO = EspecificacaoDoCalculoDaMedia(PESOS_METAS_PADRAO, VALORES_CONCEITOS_PADRAO)
