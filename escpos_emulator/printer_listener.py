# Printer Listener - TCP and serial job assembly for the ESC/POS emulator
# Accumulates raw bytes until a job boundary and hands each job over whole

import logging
import socket
import threading
import time
from typing import Callable, Dict, List, Optional

import serial

logger = logging.getLogger(__name__)

JobCallback = Callable[[bytes, str], None]


class PrinterListener:
    """
    Pretends to be a receipt printer on a raw TCP port and/or a serial port.

    A TCP job ends when the client closes the connection. A serial job ends
    after idle_timeout seconds without new bytes, or when the port fails.
    """

    def __init__(self, on_job: JobCallback,
                 on_disconnect: Optional[Callable[[str], None]] = None,
                 on_reconnect: Optional[Callable[[str], None]] = None):
        self.on_job = on_job
        self.on_disconnect = on_disconnect
        self.on_reconnect = on_reconnect
        self.running = False
        self.threads: List[threading.Thread] = []
        self.modes: List[str] = []
        self._reconnect_delay = 5
        self._reconnect_max_delay = 60
        self._bound = threading.Event()
        self.jobs_received = 0
        self._count_lock = threading.Lock()
        self._connections: List[threading.Thread] = []

        self.config = {
            'network_host': None,
            'network_port': None,
            'serial_port': None,
            'serial_baudrate': None,
            'serial_idle_timeout': None,
        }

    def start_network(self, host: str = '0.0.0.0', port: int = 9100):
        """Start listening for raw print jobs on host:port (port 0 picks a free one)"""
        self.config['network_host'] = host
        self.config['network_port'] = port
        self._bound.clear()
        self._start_thread('network', self._network_listener, host, port)

    def start_serial(self, port: str = 'COM2', baudrate: int = 9600, idle_timeout: float = 0.5):
        """Start reading print jobs from a serial port"""
        self.config['serial_port'] = port
        self.config['serial_baudrate'] = baudrate
        self.config['serial_idle_timeout'] = idle_timeout
        self._start_thread('serial', self._serial_listener, port, baudrate, idle_timeout)

    def _start_thread(self, mode: str, target, *args):
        self.running = True
        thread = threading.Thread(target=target, args=args, daemon=True)
        self.threads.append(thread)
        self.modes.append(mode)
        thread.start()

    def wait_until_listening(self, timeout: float = 5.0) -> bool:
        """Block until the TCP socket is bound"""
        return self._bound.wait(timeout)

    def stop(self):
        """Stop all listeners"""
        self.running = False
        for thread in self.threads:
            thread.join(timeout=2)
        self.threads = []
        logger.info("Listeners stopped")

    def _deliver(self, data: bytes, source: str):
        with self._count_lock:
            self.jobs_received += 1
        try:
            self.on_job(data, source)
        except Exception as e:
            logger.exception("[%s] Error processing job: %s", source, e)

    def _network_listener(self, host: str, port: int):
        """Accept connections; each is served on its own thread and is one job"""
        try:
            server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            server.bind((host, port))
            server.listen(5)
        except OSError as e:
            logger.error("TCP Error: cannot listen on %s:%s (%s). TCP listener will not start.",
                         host, port, e)
            self._bound.set()
            return

        self.config['network_port'] = server.getsockname()[1]
        self._bound.set()
        logger.info("TCP Listener active on %s:%s", host, self.config['network_port'])

        server.settimeout(1)
        try:
            while self.running:
                try:
                    conn, addr = server.accept()
                except socket.timeout:
                    continue
                except OSError as e:
                    if self.running:
                        logger.error("TCP accept error: %s", e)
                    continue
                worker = threading.Thread(target=self._handle_connection,
                                          args=(conn, addr), daemon=True)
                self._connections = [t for t in self._connections if t.is_alive()]
                self._connections.append(worker)
                worker.start()
        finally:
            server.close()
            for worker in self._connections:
                worker.join(timeout=2)
            self._connections = []

    def _handle_connection(self, conn: socket.socket, addr):
        source = f"TCP-{addr[0]}:{addr[1]}"
        logger.info("TCP Client connected: %s", source)
        conn.settimeout(1)
        buffer = b''
        try:
            while self.running:
                try:
                    data = conn.recv(4096)
                except socket.timeout:
                    continue
                except (ConnectionResetError, BrokenPipeError, OSError) as e:
                    logger.warning("[%s] Socket error: %s", source, e)
                    if self.on_disconnect:
                        self.on_disconnect(source)
                    break
                if not data:
                    logger.info("[%s] Client disconnected. Total bytes received: %d.",
                                source, len(buffer))
                    break
                logger.debug("[%s] Received %d bytes.", source, len(data))
                buffer += data
        finally:
            conn.close()

        if buffer:
            self._deliver(buffer, source)

    def _serial_listener(self, port: str, baudrate: int, idle_timeout: float):
        """Serial port listener with idle-timeout job boundaries and reconnect"""
        source = f"SERIAL-{port}"
        delay = self._reconnect_delay
        while self.running:
            buffer = b''
            try:
                ser = serial.Serial(port, baudrate, timeout=0.1)
            except serial.SerialException as e:
                logger.warning("Serial Warning: could not open port %s: %s", port, e)
                if self.on_disconnect:
                    self.on_disconnect(source)
            else:
                delay = self._reconnect_delay
                if self.on_reconnect:
                    self.on_reconnect(source)
                logger.info("Serial Listener active on %s at %s baud.", port, baudrate)
                last_data = time.monotonic()
                try:
                    while self.running:
                        waiting = ser.in_waiting
                        if waiting:
                            chunk = ser.read(waiting)
                            buffer += chunk
                            last_data = time.monotonic()
                            logger.debug("[%s] Received %d bytes.", source, len(chunk))
                        elif buffer and time.monotonic() - last_data >= idle_timeout:
                            logger.info("[%s] Data timeout. Processing %d accumulated bytes.",
                                        source, len(buffer))
                            self._deliver(buffer, source)
                            buffer = b''
                        else:
                            time.sleep(0.02)
                except serial.SerialException as e:
                    logger.warning("[%s] Port closed: %s", source, e)
                    if self.on_disconnect:
                        self.on_disconnect(source)
                finally:
                    ser.close()

                if buffer:
                    logger.info("[%s] Processing %d bytes on close.", source, len(buffer))
                    self._deliver(buffer, f"{source}-onclose")

            if self.running:
                logger.info("Reconnecting to serial %s in %s seconds...", port, delay)
                self._sleep(delay)
                delay = min(delay * 2, self._reconnect_max_delay)

    def _sleep(self, seconds: float):
        """Sleep in small steps so stop() is not held up by a reconnect delay"""
        deadline = time.monotonic() + seconds
        while self.running and time.monotonic() < deadline:
            time.sleep(0.1)

    def get_status(self) -> Dict:
        """Get listener status"""
        return {
            'running': self.running,
            'modes': list(self.modes),
            'jobs_received': self.jobs_received,
            'config': dict(self.config),
        }
