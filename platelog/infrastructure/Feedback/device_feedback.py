# platelog/infrastructure/Feedback/device_feedback.py
import io
import logging
import shlex
import subprocess
import wave
from typing import Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)

SAMPLE_RATE = 22050


def two_tone_wav(
    tones: Sequence[float] = (1000.0, 1500.0),
    tone_duration: float = 0.15,
    volume: float = 0.3,
    sample_rate: int = SAMPLE_RATE,
) -> bytes:
    """
    Sintetiza un beep de dos tonos (seno con decaimiento exponencial,
    a 1000Hz y 1500Hz) y lo devuelve como WAV PCM 16 bits.
    """
    n = int(sample_rate * tone_duration)
    t = np.arange(n) / sample_rate
    # de volume a ~0.01 en tone_duration
    envelope = volume * np.exp(np.log(0.01 / volume) * t / tone_duration)

    samples = np.concatenate([np.sin(2 * np.pi * f * t) * envelope for f in tones])
    pcm = (samples * 32767).astype("<i2")

    buf = io.BytesIO()
    with wave.open(buf, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm.tobytes())
    return buf.getvalue()


class DeviceFeedback:
    """
    Feedback sonoro / háptico vía comandos del sistema.
    - beep: el WAV se envía por stdin al reproductor (por defecto `aplay -q -`)
    - vibrate: comando opcional con placeholder {duration} (ej. `termux-vibrate -d {duration}`)
    Ambos son best-effort: devuelven False si no se pudo y nunca lanzan.
    """

    def __init__(
        self,
        player_command: Optional[str] = "aplay -q -",
        vibrate_command: Optional[str] = None,
        timeout: float = 2.0,
    ):
        self.player_command = shlex.split(player_command) if player_command else None
        self.vibrate_command = vibrate_command
        self.timeout = timeout
        self._wav = two_tone_wav()

    def beep(self) -> bool:
        if not self.player_command:
            return False
        return self._run(self.player_command, stdin=self._wav)

    def vibrate(self, duration_ms: int = 200) -> bool:
        if not self.vibrate_command:
            return False
        cmd = shlex.split(self.vibrate_command.format(duration=int(duration_ms)))
        return self._run(cmd)

    def _run(self, cmd, stdin: Optional[bytes] = None) -> bool:
        try:
            result = subprocess.run(
                cmd,
                input=stdin,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("Feedback no disponible (%s): %s", cmd[0], e)
            return False
        return result.returncode == 0


class NullFeedback:
    """Sin dispositivo de audio ni vibración."""

    def beep(self) -> bool:
        return False

    def vibrate(self, duration_ms: int = 200) -> bool:
        return False
