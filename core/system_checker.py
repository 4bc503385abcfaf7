"""
System capability checks for choosing where and what to load
"""

import os
import sys
import torch
import psutil

# Smallest available RAM (GB) each model size is recommended for
_MODEL_RAM_THRESHOLDS = [
    (16, 'medium'),
    (8, 'small'),
    (4, 'base'),
]


class SystemChecker:
    """Check system capabilities and recommend settings"""

    @staticmethod
    def check_system():
        """Check system capabilities"""
        info = {
            'python_version': sys.version,
            'torch_version': torch.__version__,
            'device': SystemChecker.preferred_device(),
            'gpu_name': None,
            'gpu_memory': 0,
            'ram_available': psutil.virtual_memory().available / 1e9,
        }

        if info['device'] == 'cuda':
            info['gpu_name'] = torch.cuda.get_device_name()
            info['gpu_memory'] = torch.cuda.get_device_properties(0).total_memory / 1e9

        info['recommended_model'] = SystemChecker.recommend_model(info['ram_available'])
        return info

    @staticmethod
    def preferred_device():
        return 'cuda' if torch.cuda.is_available() else 'cpu'

    @staticmethod
    def recommend_model(ram_available_gb):
        """Pick the largest Whisper size that fits comfortably in RAM"""
        for threshold, model in _MODEL_RAM_THRESHOLDS:
            if ram_available_gb >= threshold:
                return model
        return 'tiny'

    @staticmethod
    def cache_dir():
        """Directory where Whisper keeps downloaded model weights"""
        default = os.path.join(os.path.expanduser("~"), ".cache")
        return os.path.join(os.getenv("XDG_CACHE_HOME", default), "whisper")
