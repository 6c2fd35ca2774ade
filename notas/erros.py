# notas/erros.py — Exceções do domínio (cada uma sabe o status HTTP que representa)


class ErroNotas(Exception):
    status_http = 500

    def __init__(self, mensagem: str):
        super().__init__(mensagem)
        self.mensagem = mensagem


class NaoEncontrado(ErroNotas, LookupError):
    """Turma, sessão, estudante ou matrícula inexistente."""
    status_http = 404


class ErroValidacao(ErroNotas, ValueError):
    """Conceito inválido, arquivo não suportado, mapeamento malformado, duplicidade."""
    status_http = 400


class NaoImplementado(ErroNotas, NotImplementedError):
    """Lacuna conhecida (ex.: leitura de planilhas binárias). Não é falha transitória."""
    status_http = 501


class ErroPersistencia(ErroNotas, OSError):
    status_http = 500
