import pytest

from chapas.domain.errors import AcessoNegado, EntradaInvalida
from chapas.domain.models import Chapa, Perfil
from chapas.domain.policies import (
    OP_CADASTRAR,
    OP_EXPORTAR,
    aplicar_delta,
    exigir_ator,
    exigir_permissao,
    pode_executar,
    status_por_quantidade,
    validar_quantidade,
    validar_tipo,
)


def _chapa(q=10, p=864.0):
    return Chapa(id="c1", codigo="CH-001", descricao="Chapa", espessura=3,
                 largura=1000, comprimento=2000, quantidade=q, peso=p)


def test_aplicar_delta_retorna_nova_chapa():
    original = _chapa()
    nova = aplicar_delta(original, -4, -345.6)
    assert nova.quantidade == 6
    assert nova.peso == pytest.approx(518.4)
    assert original.quantidade == 10  # intacta
    assert nova.codigo == original.codigo


def test_aplicar_delta_piso_em_zero():
    nova = aplicar_delta(_chapa(q=2, p=10.0), -5, -50.0)
    assert nova.quantidade == 0
    assert nova.peso == 0.0


@pytest.mark.parametrize("valor,esperado", [(1, 1), ("4", 4), (" 7 ", 7), (3.0, 3)])
def test_validar_quantidade_aceita(valor, esperado):
    assert validar_quantidade(valor) == esperado


@pytest.mark.parametrize("valor", [0, -1, "0", "", "2.5", 2.5, None, True, "abc"])
def test_validar_quantidade_rejeita(valor):
    with pytest.raises(EntradaInvalida):
        validar_quantidade(valor)


def test_validar_tipo():
    assert validar_tipo("Entrada") == "entrada"
    assert validar_tipo("saída") == "saida"
    with pytest.raises(EntradaInvalida):
        validar_tipo("ajuste")


def test_permissoes_por_papel():
    assert pode_executar("controlador", "entrada")
    assert pode_executar("controlador", OP_CADASTRAR)
    assert pode_executar("operador", "saida")
    assert not pode_executar("operador", "consultar")
    assert pode_executar("operador", OP_EXPORTAR)
    assert not pode_executar("operador", "entrada")
    assert not pode_executar("operador", OP_CADASTRAR)
    assert not pode_executar("", "saida")
    assert not pode_executar("visitante", "saida")


def test_exigir_permissao_e_ator():
    with pytest.raises(AcessoNegado, match="operador"):
        exigir_permissao("operador", "entrada")
    with pytest.raises(AcessoNegado, match="não autenticado"):
        exigir_ator(None, "saida")
    p = Perfil(id="u1", nome="Beto", papel="operador")
    assert exigir_ator(p, "saida") is p


@pytest.mark.parametrize("q,status", [(0, "ZERADO"), (1, "BAIXO"), (9, "BAIXO"), (10, "OK"), (500, "OK")])
def test_status_por_quantidade(q, status):
    assert status_por_quantidade(q) == status
