# notas/matricula.py — Matrícula de um estudante numa turma: avaliações e médias
from typing import Any, Dict, List, Mapping, Optional, Union

from .config import MEDIA_APROVACAO, META_FINAL
from .especificacao import (
    ESPECIFICACAO_PADRAO,
    Conceito,
    EspecificacaoDoCalculoDaMedia,
    arredondar_uma_casa,
)
from .modelos import Avaliacao, Estudante


# Média ainda não calculada (diferente de None, que é "indeterminada")
_NAO_CALCULADA = object()


def _em_cache(valor):
    return None if valor is _NAO_CALCULADA else valor


class Matricula:
    """
    Avaliações de um estudante numa turma e as médias derivadas delas.

    As avaliações (meta → conceito) são a única fonte de verdade. A nota da
    prova final é a avaliação da meta "Final": `nota_final` apenas lê/escreve
    essa entrada, então as duas nunca divergem.

    Médias:
      - pré-final: média ponderada das metas da especificação, arredondada
        (half-up) para uma casa; None se alguma meta ainda não foi avaliada.
        Se >= 7 o aluno está dispensado da final e a nota final é descartada.
      - pós-final: igual à pré-final se >= 7; senão (pré + final)/2, com final
        ausente valendo zero.
    """

    def __init__(
        self,
        estudante: Estudante,
        especificacao: EspecificacaoDoCalculoDaMedia = ESPECIFICACAO_PADRAO,
        reprovado_por_falta: bool = False,
    ):
        self._estudante = estudante
        self.especificacao = especificacao
        self.reprovado_por_falta = bool(reprovado_por_falta)
        self._avaliacoes: Dict[str, Conceito] = {}
        self._media_pre_final: Any = _NAO_CALCULADA
        self._media_pos_final: Any = _NAO_CALCULADA

    @property
    def estudante(self) -> Estudante:
        return self._estudante

    @property
    def cpf(self) -> str:
        return self._estudante.cpf

    # -------- Avaliações --------
    @property
    def avaliacoes(self) -> List[Avaliacao]:
        # cópia: quem chama nunca altera o estado interno
        return [Avaliacao(meta, conceito) for meta, conceito in self._avaliacoes.items()]

    def avaliacao_da_meta(self, meta: str) -> Optional[Avaliacao]:
        conceito = self._avaliacoes.get(meta)
        return Avaliacao(meta, conceito) if conceito is not None else None

    def notas_por_meta(self) -> Dict[str, Conceito]:
        return dict(self._avaliacoes)

    def adicionar_ou_atualizar_avaliacao(self, meta: str, conceito: Union[str, Conceito]) -> None:
        self._avaliacoes[meta] = Conceito.de_texto(conceito)
        self._invalidar_medias(meta)

    def remover_avaliacao(self, meta: str) -> bool:
        if meta not in self._avaliacoes:
            return False
        del self._avaliacoes[meta]
        self._invalidar_medias(meta)
        return True

    @property
    def nota_final(self) -> Optional[Conceito]:
        return self._avaliacoes.get(META_FINAL)

    @nota_final.setter
    def nota_final(self, conceito: Union[str, Conceito, None]) -> None:
        if conceito is None or conceito == "":
            self.remover_avaliacao(META_FINAL)
        else:
            self.adicionar_ou_atualizar_avaliacao(META_FINAL, conceito)

    def definir_nota_final(self, conceito: Union[str, Conceito, None]) -> None:
        self.nota_final = conceito

    def _invalidar_medias(self, meta: str) -> None:
        if meta != META_FINAL:
            self._media_pre_final = _NAO_CALCULADA
        self._media_pos_final = _NAO_CALCULADA

    # -------- Médias --------
    def calcular_media_pre_final(self) -> Optional[float]:
        metas = self.especificacao.metas
        if any(meta not in self._avaliacoes for meta in metas):
            self._media_pre_final = None
            return None

        notas = {meta: self._avaliacoes[meta] for meta in metas}
        resultado = arredondar_uma_casa(self.especificacao.calc(notas, metas_exigidas=metas))
        self._media_pre_final = resultado

        if resultado >= MEDIA_APROVACAO:
            # dispensado da final
            self.nota_final = None
            self._media_pos_final = None
        return resultado

    def calcular_media_pos_final(self) -> Optional[float]:
        pre = self._media_pre_final
        if pre is _NAO_CALCULADA or pre is None:
            pre = self.calcular_media_pre_final()

        if pre is None:
            self._media_pos_final = None
            return None

        if pre >= MEDIA_APROVACAO:
            self._media_pos_final = None
            return pre

        final = self.nota_final
        if final is None:
            # final não registrada conta como zero
            self._media_pos_final = pre / 2
            return self._media_pos_final

        pos = arredondar_uma_casa((pre + self.especificacao.valor(final)) / 2)
        self._media_pos_final = pos
        return pos

    @property
    def media_pre_final(self) -> Optional[float]:
        if self._media_pre_final is _NAO_CALCULADA:
            return self.calcular_media_pre_final()
        return self._media_pre_final

    @property
    def media_pos_final(self) -> Optional[float]:
        pre = self.media_pre_final
        if pre is not None and pre >= MEDIA_APROVACAO:
            return pre
        if self._media_pos_final is _NAO_CALCULADA:
            return self.calcular_media_pos_final()
        return self._media_pos_final

    def recalcular_medias(self) -> Optional[float]:
        self.calcular_media_pre_final()
        return self.calcular_media_pos_final()

    def media_para_status(self) -> float:
        """
        Número usado na classificação de status: a média pós-final quando
        determinada; senão a média parcial das metas já avaliadas; senão 0.
        """
        pos = self.media_pos_final
        if pos is not None:
            return float(pos)
        parciais = {m: c for m, c in self._avaliacoes.items() if m != META_FINAL}
        parcial = self.especificacao.calc(parciais)
        if parcial is None:
            return 0.0
        return arredondar_uma_casa(parcial)

    # -------- Persistência --------
    def para_dict(self) -> Dict[str, Any]:
        nota_final = self.nota_final
        return {
            "student": self._estudante.para_dict(),
            "evaluations": [a.para_dict() for a in self.avaliacoes],
            "notaFinal": nota_final.value if nota_final is not None else None,
            "mediaPreFinal": _em_cache(self._media_pre_final),
            "mediaPosFinal": _em_cache(self._media_pos_final),
            "reprovadoPorFalta": self.reprovado_por_falta,
        }

    @classmethod
    def de_dict(
        cls,
        dados: Mapping[str, Any],
        estudante: Estudante,
        especificacao: EspecificacaoDoCalculoDaMedia = ESPECIFICACAO_PADRAO,
    ) -> "Matricula":
        matricula = cls(estudante, especificacao, bool(dados.get("reprovadoPorFalta", False)))
        for item in dados.get("evaluations") or []:
            avaliacao = Avaliacao.de_dict(item)
            matricula._avaliacoes[avaliacao.meta] = avaliacao.conceito

        # formato antigo: notaFinal gravada sem a avaliação "Final"
        nota_final = dados.get("notaFinal")
        if nota_final and META_FINAL not in matricula._avaliacoes:
            matricula._avaliacoes[META_FINAL] = Conceito.de_texto(nota_final)

        # médias nulas são recalculadas sob demanda
        if dados.get("mediaPreFinal") is not None:
            matricula._media_pre_final = float(dados["mediaPreFinal"])
        if dados.get("mediaPosFinal") is not None:
            matricula._media_pos_final = float(dados["mediaPosFinal"])
        return matricula

    def __repr__(self):
        return f"Matricula(cpf={self.cpf!r}, avaliacoes={len(self._avaliacoes)})"
