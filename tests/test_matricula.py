import pytest

from notas.config import PESOS_METAS_PADRAO
from notas.erros import ErroValidacao
from notas.especificacao import Conceito, EspecificacaoDoCalculoDaMedia
from notas.matricula import Matricula
from notas.modelos import Estudante

METAS = list(PESOS_METAS_PADRAO)


@pytest.fixture
def matricula():
    return Matricula(Estudante("Ana", "111.111.111-11", "ana@test.com"))


def _lancar(matricula, conceitos):
    for meta, conceito in zip(METAS, conceitos):
        matricula.adicionar_ou_atualizar_avaliacao(meta, conceito)


def test_sem_avaliacoes_media_indeterminada(matricula):
    assert matricula.media_pre_final is None
    assert matricula.media_pos_final is None
    assert matricula.media_para_status() == 0.0


def test_falta_uma_meta_fica_indeterminada(matricula):
    _lancar(matricula, ["MA"] * 5)
    assert matricula.media_pre_final is None
    assert matricula.media_pos_final is None


def test_todas_ma(matricula):
    _lancar(matricula, ["MA"] * 6)
    assert matricula.media_pre_final == 10.0
    assert matricula.media_pos_final == 10.0


def test_abaixo_de_sete_sem_final_conta_zero(matricula):
    _lancar(matricula, ["MPA"] * 5 + ["MANA"])
    assert matricula.media_pre_final == 5.8
    assert matricula.media_pos_final == pytest.approx(2.9)


def test_media_pos_final_com_prova_final(matricula):
    _lancar(matricula, ["MPA"] * 5 + ["MANA"])
    matricula.nota_final = "MA"
    assert matricula.media_pos_final == 7.9
    matricula.definir_nota_final(Conceito.MPA)
    assert matricula.media_pos_final == 6.4


def test_aprovado_descarta_nota_final(matricula):
    matricula.nota_final = "MA"
    _lancar(matricula, ["MPA"] * 6)
    assert matricula.media_pre_final == 7.0
    assert matricula.nota_final is None
    assert matricula.avaliacao_da_meta("Final") is None
    assert matricula.media_pos_final == 7.0


def test_nota_final_e_a_avaliacao_final(matricula):
    matricula.nota_final = "MPA"
    assert matricula.avaliacao_da_meta("Final").conceito is Conceito.MPA

    matricula.adicionar_ou_atualizar_avaliacao("Final", "MA")
    assert matricula.nota_final is Conceito.MA

    matricula.nota_final = None
    assert matricula.avaliacao_da_meta("Final") is None
    assert matricula.nota_final is None


def test_alterar_meta_recalcula(matricula):
    _lancar(matricula, ["MA"] * 6)
    assert matricula.media_pre_final == 10.0
    matricula.adicionar_ou_atualizar_avaliacao("Design", "MANA")
    assert matricula.media_pre_final == 8.3
    assert matricula.remover_avaliacao("Design") is True
    assert matricula.remover_avaliacao("Design") is False
    assert matricula.media_pre_final is None


def test_avaliacoes_e_copia(matricula):
    matricula.adicionar_ou_atualizar_avaliacao("Requirements", "MA")
    lista = matricula.avaliacoes
    lista.clear()
    assert len(matricula.avaliacoes) == 1


def test_conceito_invalido_nao_altera(matricula):
    matricula.adicionar_ou_atualizar_avaliacao("Requirements", "MPA")
    with pytest.raises(ErroValidacao):
        matricula.adicionar_ou_atualizar_avaliacao("Requirements", "XYZ")
    assert matricula.avaliacao_da_meta("Requirements").conceito is Conceito.MPA


def test_media_para_status_parcial(matricula):
    matricula.adicionar_ou_atualizar_avaliacao("Requirements", "MA")
    matricula.adicionar_ou_atualizar_avaliacao("Design", "MPA")
    assert matricula.media_pre_final is None
    assert matricula.media_para_status() == 8.5


def test_especificacao_da_turma_define_metas_exigidas():
    esp = EspecificacaoDoCalculoDaMedia({"A": 2, "B": 1}, {"MA": 10, "MPA": 7, "MANA": 0})
    matricula = Matricula(Estudante("Bia", "22222222222"), esp)
    matricula.adicionar_ou_atualizar_avaliacao("A", "MA")
    assert matricula.media_pre_final is None
    matricula.adicionar_ou_atualizar_avaliacao("B", "MANA")
    assert matricula.media_pre_final == 6.7


def test_para_dict_de_dict(matricula):
    _lancar(matricula, ["MPA"] * 5 + ["MANA"])
    matricula.nota_final = "MPA"
    matricula.reprovado_por_falta = True
    matricula.recalcular_medias()

    dados = matricula.para_dict()
    assert dados["notaFinal"] == "MPA"
    assert dados["mediaPreFinal"] == 5.8
    assert dados["mediaPosFinal"] == 6.4
    assert {"goal": "Final", "grade": "MPA"} in dados["evaluations"]

    copia = Matricula.de_dict(dados, matricula.estudante)
    assert copia.estudante is matricula.estudante
    assert copia.notas_por_meta() == matricula.notas_por_meta()
    assert copia.nota_final is Conceito.MPA
    assert copia.reprovado_por_falta is True
    assert copia.media_pos_final == 6.4


def test_de_dict_formato_antigo_com_nota_final_separada(matricula):
    dados = {
        "evaluations": [{"goal": "Requirements", "grade": "MA"}],
        "notaFinal": "MPA",
        "mediaPreFinal": None,
        "mediaPosFinal": None,
    }
    copia = Matricula.de_dict(dados, matricula.estudante)
    assert copia.nota_final is Conceito.MPA
    assert copia.avaliacao_da_meta("Final").conceito is Conceito.MPA
    assert copia.reprovado_por_falta is False
