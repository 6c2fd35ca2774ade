# notas/modelos.py — Estudante e Avaliação
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Union

from .especificacao import Conceito
from .erros import ErroValidacao


def limpar_cpf(cpf: Any) -> str:
    """Mantém apenas os dígitos ('111.111.111-11' → '11111111111')."""
    return re.sub(r"\D", "", str(cpf or ""))


@dataclass(frozen=True)
class Avaliacao:
    meta: str
    conceito: Conceito

    def __post_init__(self):
        object.__setattr__(self, "conceito", Conceito.de_texto(self.conceito))

    def para_dict(self) -> Dict[str, str]:
        return {"goal": self.meta, "grade": self.conceito.value}

    @classmethod
    def de_dict(cls, dados: Dict[str, Any]) -> "Avaliacao":
        return cls(str(dados["goal"]), dados["grade"])


@dataclass(eq=False)
class Estudante:
    """
    Estudante identificado pelo CPF (somente dígitos).

    Igualdade por identidade: a matrícula guarda uma referência ao objeto do
    registro de estudantes, nunca uma cópia.
    """
    nome: str
    cpf: str
    email: str = ""
    extras: Dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        self.cpf = limpar_cpf(self.cpf)
        if len(self.cpf) != 11:
            raise ErroValidacao(f"CPF inválido: '{self.cpf}' (esperados 11 dígitos)")
        self.nome = str(self.nome or "").strip()
        self.email = str(self.email or "").strip()

    def para_dict(self) -> Dict[str, Union[str, Dict]]:
        dados = {"name": self.nome, "cpf": self.cpf, "email": self.email}
        dados.update(self.extras)
        return dados

    @classmethod
    def de_dict(cls, dados: Dict[str, Any]) -> "Estudante":
        extras = {k: v for k, v in dados.items() if k not in ("name", "cpf", "email")}
        return cls(dados.get("name", ""), dados.get("cpf", ""), dados.get("email", ""), extras)
