"""voxclean — limpeza offline de gravacoes de voz antes da transcricao."""

__version__ = "0.1.0"
