"""
Worker threads and timers for background loading and serving
"""

from .model_loader import ModelLoader
from .serving_supervisor import ServingConfig, WorkerStartError, WorkerSupervisor
from .ticker import Ticker
from .transcription_worker import ServingWorker

__all__ = ['ModelLoader', 'ServingConfig', 'WorkerStartError', 'WorkerSupervisor', 'Ticker', 'ServingWorker']
