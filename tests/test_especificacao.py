import pytest

from notas.config import tabela_especificacao_padrao
from notas.erros import ErroValidacao
from notas.especificacao import (
    ESPECIFICACAO_PADRAO,
    Conceito,
    EspecificacaoDoCalculoDaMedia,
    arredondar_uma_casa,
)


def test_conceito_de_texto_ignora_espacos():
    assert Conceito.de_texto(" MA ") is Conceito.MA
    assert Conceito.de_texto(Conceito.MPA) is Conceito.MPA
    assert Conceito.MANA == "MANA"


@pytest.mark.parametrize("token", ["ma", "A", "", "MB", None])
def test_conceito_invalido(token):
    with pytest.raises(ErroValidacao, match="Invalid grade"):
        Conceito.de_texto(token)


def test_padrao_tem_seis_metas_de_peso_um():
    assert ESPECIFICACAO_PADRAO.metas == (
        "Requirements",
        "Configuration Management",
        "Project Management",
        "Design",
        "Refactoring",
        "Tests",
    )
    assert all(ESPECIFICACAO_PADRAO.peso(m) == 1 for m in ESPECIFICACAO_PADRAO.metas)
    assert ESPECIFICACAO_PADRAO.valor("MA") == 10
    assert ESPECIFICACAO_PADRAO.valor(Conceito.MPA) == 7
    assert ESPECIFICACAO_PADRAO.valor("MANA") == 0


def test_calc_media_ponderada():
    assert ESPECIFICACAO_PADRAO.calc({"Requirements": "MA", "Design": "MPA"}) == pytest.approx(8.5)

    esp = EspecificacaoDoCalculoDaMedia({"A": 2, "B": 1}, {"MA": 10, "MPA": 7, "MANA": 0})
    assert esp.calc({"A": "MA", "B": "MANA"}) == pytest.approx(20 / 3)


def test_calc_ignora_metas_desconhecidas():
    assert ESPECIFICACAO_PADRAO.calc({"Requirements": "MA", "Outra": "MANA"}) == pytest.approx(10.0)


def test_calc_indeterminado():
    assert ESPECIFICACAO_PADRAO.calc({}) is None
    assert ESPECIFICACAO_PADRAO.calc({"Outra": "MA"}) is None
    assert ESPECIFICACAO_PADRAO.calc({"Requirements": "MA"}, metas_exigidas=["Requirements", "Design"]) is None


def test_especificacao_imutavel():
    with pytest.raises(AttributeError):
        ESPECIFICACAO_PADRAO.qualquer = 1
    with pytest.raises(TypeError):
        ESPECIFICACAO_PADRAO.pesos_das_metas["Requirements"] = 5


def test_especificacao_valida_pesos_e_conceitos():
    with pytest.raises(ErroValidacao):
        EspecificacaoDoCalculoDaMedia({"A": 0}, {"MA": 10, "MPA": 7, "MANA": 0})
    with pytest.raises(ErroValidacao):
        EspecificacaoDoCalculoDaMedia({}, {"MA": 10, "MPA": 7, "MANA": 0})
    with pytest.raises(ErroValidacao, match="MANA"):
        EspecificacaoDoCalculoDaMedia({"A": 1}, {"MA": 10, "MPA": 7})


def test_para_dict_de_dict():
    esp = EspecificacaoDoCalculoDaMedia({"A": 3, "B": 1}, {"MA": 9, "MPA": 6, "MANA": 1})
    copia = EspecificacaoDoCalculoDaMedia.de_dict(esp.para_dict())
    assert copia == esp
    assert hash(copia) == hash(esp)
    assert copia != ESPECIFICACAO_PADRAO


@pytest.mark.parametrize("valor,esperado", [(6.25, 6.3), (6.35, 6.4), (8.45, 8.5), (5.8333, 5.8), (7.0, 7.0)])
def test_arredondar_uma_casa_half_up(valor, esperado):
    assert arredondar_uma_casa(valor) == esperado


def test_tabela_especificacao_padrao():
    df = tabela_especificacao_padrao()
    assert list(df.columns) == ["meta", "peso"]
    assert len(df) == 6
