import pytest

from notas.erros import NaoEncontrado

CABECALHOS = ["cpf", "Requirements"]
LINHAS = [{"cpf": "11111111111", "Requirements": "MA"}]


def test_criar_e_obter(sessoes):
    sessao = sessoes.criar(CABECALHOS, LINHAS, turma_id="ESS-2025-1")
    assert sessao.token == "sessao-1"
    assert sessoes.obter("sessao-1") is sessao
    assert sessao.cabecalhos == ("cpf", "Requirements")
    assert sessao.turma_id == "ESS-2025-1"
    assert "sessao-1" in sessoes
    assert len(sessoes) == 1


def test_tokens_distintos(sessoes):
    tokens = {sessoes.criar(CABECALHOS, LINHAS).token for _ in range(5)}
    assert len(tokens) == 5


def test_linhas_sao_copiadas(sessoes):
    linhas = [dict(LINHAS[0])]
    sessao = sessoes.criar(CABECALHOS, linhas)
    linhas[0]["Requirements"] = "MANA"
    assert sessoes.obter(sessao.token).linhas[0]["Requirements"] == "MA"


def test_sessao_expira(sessoes, relogio):
    sessao = sessoes.criar(CABECALHOS, LINHAS)
    relogio.avancar(59)
    assert sessoes.obter(sessao.token) is sessao
    relogio.avancar(1)
    assert sessao.token not in sessoes
    with pytest.raises(NaoEncontrado, match="Session not found or expired"):
        sessoes.obter(sessao.token)
    assert len(sessoes) == 0


def test_token_desconhecido(sessoes):
    with pytest.raises(NaoEncontrado):
        sessoes.obter("nao-existe")


def test_consumir_uma_vez(sessoes):
    sessao = sessoes.criar(CABECALHOS, LINHAS)
    assert sessoes.consumir(sessao.token) is sessao
    with pytest.raises(NaoEncontrado):
        sessoes.consumir(sessao.token)


def test_consumir_expirada(sessoes, relogio):
    sessao = sessoes.criar(CABECALHOS, LINHAS)
    relogio.avancar(120)
    with pytest.raises(NaoEncontrado):
        sessoes.consumir(sessao.token)


def test_descartar_e_limpar_expiradas(sessoes, relogio):
    antiga = sessoes.criar(CABECALHOS, LINHAS)
    relogio.avancar(30)
    nova = sessoes.criar(CABECALHOS, LINHAS)
    relogio.avancar(40)
    assert sessoes.limpar_expiradas() == 1
    assert antiga.token not in sessoes
    assert sessoes.descartar(nova.token) is True
    assert sessoes.descartar(nova.token) is False
    assert len(sessoes) == 0
