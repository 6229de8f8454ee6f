"""Interface base para stages do pipeline de limpeza."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from voxclean._types import Signal


class AudioStage(ABC):
    """Stage individual do pipeline de limpeza de audio.

    Cada stage recebe um Signal e retorna um novo Signal com array proprio.
    Estado interno de processamento (historico de filtro, envelope do
    compressor) e criado a cada chamada de process() e descartado no fim:
    instancias podem ser reutilizadas entre invocacoes e threads.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Nome identificador do stage (ex: 'silence_trim', 'fade')."""
        ...

    @abstractmethod
    def process(self, signal: Signal) -> Signal:
        """Processa o sinal completo.

        Args:
            signal: Sinal de entrada (nao e modificado).

        Returns:
            Novo Signal processado.
        """
        ...
