# Sound Notifier - audible "receipt received" signal for the ESC/POS emulator
# One worker thread drains a queue of job events and beeps once per burst

import logging
import queue
import sys
import threading
import time
from typing import Callable, Optional, Tuple

# Beeps use winsound, which only exists on Windows
WINSOUND_AVAILABLE = False
if sys.platform == 'win32':
    try:
        import winsound
        WINSOUND_AVAILABLE = True
    except ImportError:
        pass

logger = logging.getLogger(__name__)

# (frequency Hz, duration ms) per transport
TONES = {
    'TCP': (1200, 200),
    'SERIAL': (700, 300),
    'DEFAULT': (800, 250),
}

_STOP = object()


def source_type(source_label: str) -> str:
    upper = source_label.upper()
    if upper.startswith('TCP'):
        return 'TCP'
    if upper.startswith('SERIAL'):
        return 'SERIAL'
    return 'DEFAULT'


def tone_for(source_label: str) -> Tuple[int, int]:
    return TONES[source_type(source_label)]


def system_beep(frequency: int, duration: int):
    """Play a tone through the OS, where supported"""
    if not WINSOUND_AVAILABLE:
        logger.warning("Beep is only supported on Windows (%d Hz, %d ms skipped)",
                       frequency, duration)
        return
    winsound.Beep(frequency, duration)


class SoundNotifier:
    """
    Plays a tone for each received job.

    Events that arrive while a tone is playing or cooling down are merged:
    only the most recent one is played once the cooldown is over.
    """

    def __init__(self, cooldown: float = 0.4,
                 beep: Optional[Callable[[int, int], None]] = None):
        self.cooldown = cooldown
        self.beep = beep or system_beep
        self.events = queue.Queue()
        self.played = 0
        self.thread = threading.Thread(target=self._worker, daemon=True)
        self.thread.start()

    def notify(self, source_label: str):
        """Queue a 'job received' event"""
        self.events.put(source_label)

    def stop(self):
        self.events.put(_STOP)
        self.thread.join(timeout=2)

    def _latest_pending(self, source_label):
        """Drop queued events in favour of the newest one"""
        while True:
            try:
                newer = self.events.get_nowait()
            except queue.Empty:
                return source_label
            if newer is _STOP:
                self.events.put(_STOP)
                return source_label
            logger.debug("[SOUND] Busy; %s replaces queued %s", newer, source_label)
            source_label = newer

    def _worker(self):
        while True:
            source_label = self.events.get()
            if source_label is _STOP:
                break
            source_label = self._latest_pending(source_label)
            frequency, duration = tone_for(source_label)
            try:
                self.beep(frequency, duration)
                self.played += 1
                logger.info("[SOUND] %s sound played (Freq: %d, Dur: %d).",
                            source_type(source_label), frequency, duration)
            except Exception as e:
                logger.error("[SOUND] Beep for %s failed: %s", source_label, e)
            time.sleep(self.cooldown)
