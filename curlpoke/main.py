from __future__ import annotations

import argparse
import logging
import os

from curlpoke.core.config import DEFAULT_PRESET, CounterConfig
from curlpoke.core.control import SessionControls
from curlpoke.core.types import Phase, Viewport
from curlpoke.remote.counter import RemoteCounterClient
from curlpoke.runtime.calibration import FALLBACK_ANCHOR, FingertipLocator, sprite_size
from curlpoke.session.state_machine import GameSession


def _parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="curlpoke", description="Poke the rising stone on the right side.")
    p.add_argument("--source", choices=("mouse", "webcam", "fake"), default="mouse")
    p.add_argument("--sprite", default=os.environ.get("CURLPOKE_HAND_SPRITE"),
                   help="poke-hand PNG used for drawing and fingertip calibration")
    p.add_argument("--width", type=int, default=960)
    p.add_argument("--height", type=int, default=720)
    p.add_argument("--dpr", type=float, default=1.0, help="device pixel ratio for the render canvas (clamped to 1..2.5)")
    p.add_argument("--no-tray", action="store_true")
    p.add_argument("--seconds", type=float, default=20.0, help="fake source run time")
    return p.parse_args(argv)


def main(argv=None) -> None:
    logging.basicConfig(
        level=os.environ.get("CURLPOKE_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = _parse_args(argv)

    if args.source == "fake":
        from curlpoke.runtime.run_loop import run
        run(seconds=args.seconds)
        return

    anchor = FALLBACK_ANCHOR
    if args.sprite:
        anchor = FingertipLocator().calibrate_file(args.sprite)
    print(f"[CurlPoke] fingertip anchor ({anchor.source}): {anchor.local_x:.1f}, {anchor.local_y:.0f}")

    counter = RemoteCounterClient(CounterConfig.from_env())
    counter.init()

    session = GameSession(
        preset=DEFAULT_PRESET,
        viewport=Viewport(args.width, args.height, args.dpr),
        anchor=anchor,
        sprite_size=sprite_size(args.sprite),
        counter=counter,
    )
    controls = SessionControls()

    from curlpoke.control_daemon import start_controls
    stop = start_controls(
        controls,
        status=lambda: f"score {session.state.score}",
        playing=lambda: session.phase == Phase.PLAYING,
        tray=not args.no_tray,
    )

    webcam = None
    if args.source == "webcam":
        from curlpoke.sensor.webcam_mp import WebcamMPSrc
        webcam = WebcamMPSrc(viewport_w=args.width)

    from curlpoke.runtime.run_window import main as run_window
    try:
        run_window(session, controls, sprite_path=args.sprite, webcam=webcam)
    except KeyboardInterrupt:
        print("\n[CurlPoke] exiting")
    finally:
        stop.set()
        counter.close()


if __name__ == "__main__":
    main()
