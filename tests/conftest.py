import os

import pytest

from notas.api import ServicoNotas
from notas.config import PESOS_METAS_PADRAO
from notas.importacao import ImportadorNotas
from notas.modelos import Estudante
from notas.repositorio import RegistroEstudantes, RegistroTurmas
from notas.sessoes import ArmazemSessoes
from notas.turma import Turma

PASTA_ARQUIVOS = os.path.join(os.path.dirname(__file__), "arquivos")

TURMA_ID = "Engenharia de Software e Sistemas-2025-1"
METAS = list(PESOS_METAS_PADRAO)

ALUNOS = [
    ("Student One", "11111111111", "student1@test.com"),
    ("Student Two", "22222222222", "student2@test.com"),
    ("Student Three", "33333333333", "student3@test.com"),
    ("Student Four", "55555555555", "student4@test.com"),
]


class RelogioFalso:
    def __init__(self, agora: float = 1000.0):
        self.agora = agora

    def __call__(self) -> float:
        return self.agora

    def avancar(self, segundos: float) -> None:
        self.agora += segundos


@pytest.fixture
def caminho_arquivo():
    def _caminho(nome: str) -> str:
        return os.path.join(PASTA_ARQUIVOS, nome)
    return _caminho


@pytest.fixture
def ler_arquivo(caminho_arquivo):
    def _ler(nome: str) -> bytes:
        with open(caminho_arquivo(nome), "rb") as f:
            return f.read()
    return _ler


@pytest.fixture
def relogio():
    return RelogioFalso()


@pytest.fixture
def sessoes(relogio):
    contador = iter(range(1, 10_000))
    return ArmazemSessoes(ttl=60, relogio=relogio, gerar_token=lambda: f"sessao-{next(contador)}")


@pytest.fixture
def estudantes():
    registro = RegistroEstudantes()
    for nome, cpf, email in ALUNOS:
        registro.adicionar(Estudante(nome, cpf, email))
    return registro


@pytest.fixture
def turmas(estudantes):
    """Turma com os quatro alunos matriculados e todas as metas em MANA."""
    registro = RegistroTurmas(estudantes=estudantes)
    turma = registro.adicionar(Turma("Engenharia de Software e Sistemas", 1, 2025))
    for estudante in estudantes.todos():
        matricula = turma.adicionar_matricula(estudante)
        for meta in METAS:
            matricula.adicionar_ou_atualizar_avaliacao(meta, "MANA")
    return registro


@pytest.fixture
def turma(turmas):
    return turmas.obter(TURMA_ID)


@pytest.fixture
def importador(turmas, sessoes):
    return ImportadorNotas(turmas, sessoes)


@pytest.fixture
def servico(estudantes, turmas, sessoes):
    return ServicoNotas(estudantes, turmas, sessoes)
