# notas/turma.py — Turma (tópico, semestre, ano) e suas matrículas
from typing import Any, Callable, Dict, List, Mapping, Optional

import numpy as np

from .config import COLUNA_CPF, META_FINAL
from .erros import ErroValidacao, NaoEncontrado
from .especificacao import ESPECIFICACAO_PADRAO, EspecificacaoDoCalculoDaMedia
from .matricula import Matricula
from .modelos import Estudante, limpar_cpf


def montar_id_turma(topico: str, ano: int, semestre: int) -> str:
    return f"{topico}-{ano}-{semestre}"


class Turma:
    def __init__(
        self,
        topico: str,
        semestre: int,
        ano: int,
        especificacao: EspecificacaoDoCalculoDaMedia = ESPECIFICACAO_PADRAO,
    ):
        self.topico = str(topico).strip()
        self.semestre = int(semestre)
        self.ano = int(ano)
        self.especificacao = especificacao
        self._matriculas: Dict[str, Matricula] = {}

    @property
    def id(self) -> str:
        return montar_id_turma(self.topico, self.ano, self.semestre)

    # -------- Matrículas --------
    @property
    def matriculas(self) -> List[Matricula]:
        return list(self._matriculas.values())

    def adicionar_matricula(self, estudante: Estudante) -> Matricula:
        if estudante.cpf in self._matriculas:
            raise ErroValidacao(f"Estudante {estudante.cpf} já está matriculado na turma {self.id}")
        matricula = Matricula(estudante, self.especificacao)
        self._matriculas[estudante.cpf] = matricula
        return matricula

    def remover_matricula(self, cpf: str) -> bool:
        return self._matriculas.pop(limpar_cpf(cpf), None) is not None

    def matricula_do_cpf(self, cpf: str) -> Optional[Matricula]:
        return self._matriculas.get(limpar_cpf(cpf))

    def obter_matricula(self, cpf: str) -> Matricula:
        matricula = self.matricula_do_cpf(cpf)
        if matricula is None:
            raise NaoEncontrado(f"Student with CPF {cpf} is not enrolled in class {self.id}")
        return matricula

    def __contains__(self, cpf: str) -> bool:
        return limpar_cpf(cpf) in self._matriculas

    def __len__(self) -> int:
        return len(self._matriculas)

    # -------- Metas e médias --------
    def metas_de_mapeamento(self) -> List[str]:
        """Colunas-alvo aceitas no mapeamento de importação."""
        return [COLUNA_CPF, *self.especificacao.metas, META_FINAL]

    def media_da_turma(self) -> float:
        if not self._matriculas:
            return 0.0
        medias = np.array([m.media_para_status() for m in self._matriculas.values()], dtype=float)
        return float(medias.mean())

    # -------- Persistência --------
    def para_dict(self) -> Dict[str, Any]:
        dados = {
            "topic": self.topico,
            "semester": self.semestre,
            "year": self.ano,
            "enrollments": [m.para_dict() for m in self._matriculas.values()],
        }
        if self.especificacao != ESPECIFICACAO_PADRAO:
            dados["especificacao"] = self.especificacao.para_dict()
        return dados

    @classmethod
    def de_dict(cls, dados: Mapping[str, Any], buscar_estudante: Callable[[str], Optional[Estudante]]) -> "Turma":
        """
        Reconstrói a turma resolvendo cada CPF no registro de estudantes, para
        que as matrículas apontem para os mesmos objetos Estudante.
        """
        especificacao = ESPECIFICACAO_PADRAO
        if dados.get("especificacao"):
            especificacao = EspecificacaoDoCalculoDaMedia.de_dict(dados["especificacao"])

        turma = cls(dados["topic"], dados["semester"], dados["year"], especificacao)
        for item in dados.get("enrollments") or []:
            cpf = limpar_cpf((item.get("student") or {}).get("cpf"))
            estudante = buscar_estudante(cpf)
            if estudante is None:
                raise NaoEncontrado(f"Estudante {cpf} da turma {turma.id} não está no registro")
            turma._matriculas[cpf] = Matricula.de_dict(item, estudante, especificacao)
        return turma

    def __repr__(self):
        return f"Turma({self.id!r}, matriculas={len(self._matriculas)})"
