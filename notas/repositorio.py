# notas/repositorio.py — Registros de estudantes e turmas persistidos em JSON
import json
import logging
import os
from typing import Dict, List, Optional

from .erros import ErroPersistencia, ErroValidacao, NaoEncontrado
from .modelos import Estudante, limpar_cpf
from .turma import Turma

logger = logging.getLogger(__name__)


def garantir_diretorio(caminho: str):
    if caminho:
        os.makedirs(caminho, exist_ok=True)


def _ler_json(caminho: Optional[str]):
    """Conteúdo do arquivo, ou None se ele ainda não existe."""
    if not caminho or not os.path.exists(caminho):
        return None
    try:
        with open(caminho, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise ErroPersistencia(f"Não foi possível ler {caminho}: {e}") from e


def _gravar_json(caminho: Optional[str], dados) -> None:
    if not caminho:
        return
    temporario = caminho + ".tmp"
    try:
        garantir_diretorio(os.path.dirname(caminho))
        with open(temporario, "w", encoding="utf-8") as f:
            json.dump(dados, f, ensure_ascii=False, indent=2)
        os.replace(temporario, caminho)
    except OSError as e:
        raise ErroPersistencia(f"Não foi possível gravar {caminho}: {e}") from e
    logger.debug("Gravado %s", caminho)


class RegistroEstudantes:
    """Estudantes por CPF. Sem `caminho` o registro vive só em memória."""

    def __init__(self, caminho: Optional[str] = None):
        self.caminho = caminho
        self._estudantes: Dict[str, Estudante] = {}

    def adicionar(self, estudante: Estudante) -> Estudante:
        if estudante.cpf in self._estudantes:
            raise ErroValidacao(f"Já existe estudante com CPF {estudante.cpf}")
        self._estudantes[estudante.cpf] = estudante
        return estudante

    def remover(self, cpf: str) -> bool:
        return self._estudantes.pop(limpar_cpf(cpf), None) is not None

    def atualizar(self, estudante: Estudante) -> Estudante:
        atual = self._estudantes.get(estudante.cpf)
        if atual is None:
            raise NaoEncontrado(f"Student with CPF {estudante.cpf} not found")
        # altera o objeto existente: as matrículas continuam apontando para ele
        atual.nome = estudante.nome
        atual.email = estudante.email
        atual.extras = dict(estudante.extras)
        return atual

    def buscar(self, cpf: str) -> Optional[Estudante]:
        return self._estudantes.get(limpar_cpf(cpf))

    def todos(self) -> List[Estudante]:
        return list(self._estudantes.values())

    def __len__(self) -> int:
        return len(self._estudantes)

    def carregar(self) -> "RegistroEstudantes":
        dados = _ler_json(self.caminho) or []
        self._estudantes = {}
        for item in dados:
            estudante = Estudante.de_dict(item)
            self._estudantes[estudante.cpf] = estudante
        logger.info("%d estudante(s) carregado(s) de %s", len(self._estudantes), self.caminho)
        return self

    def salvar(self) -> None:
        _gravar_json(self.caminho, [e.para_dict() for e in self._estudantes.values()])


class RegistroTurmas:
    """
    Turmas pelo id "{tópico}-{ano}-{semestre}". Depende do registro de
    estudantes para ligar cada matrícula ao mesmo objeto Estudante.
    """

    def __init__(self, caminho: Optional[str] = None, estudantes: Optional[RegistroEstudantes] = None):
        self.caminho = caminho
        self.estudantes = estudantes if estudantes is not None else RegistroEstudantes()
        self._turmas: Dict[str, Turma] = {}

    def adicionar(self, turma: Turma) -> Turma:
        if turma.id in self._turmas:
            raise ErroValidacao(f"Turma {turma.id} já existe")
        self._turmas[turma.id] = turma
        return turma

    def remover(self, turma_id: str) -> bool:
        return self._turmas.pop(turma_id, None) is not None

    def buscar(self, turma_id: str) -> Optional[Turma]:
        return self._turmas.get(turma_id)

    def obter(self, turma_id: str) -> Turma:
        turma = self._turmas.get(turma_id)
        if turma is None:
            raise NaoEncontrado("Class not Found")
        return turma

    def todas(self) -> List[Turma]:
        return list(self._turmas.values())

    def __len__(self) -> int:
        return len(self._turmas)

    def carregar(self) -> "RegistroTurmas":
        dados = _ler_json(self.caminho) or []
        self._turmas = {}
        for item in dados:
            turma = Turma.de_dict(item, self.estudantes.buscar)
            self._turmas[turma.id] = turma
        logger.info("%d turma(s) carregada(s) de %s", len(self._turmas), self.caminho)
        return self

    def salvar(self) -> None:
        _gravar_json(self.caminho, [t.para_dict() for t in self._turmas.values()])
