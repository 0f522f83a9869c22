"""
Command-line interface for the sign alert detector.

Usage:
    python main.py
    python main.py --name "Hello" --voice-alert "Hello there"   # enables recording with R
"""
import argparse
import logging
import sys
import time

import cv2

from signalert.backend.core import config
from signalert.backend.core.errors import InvalidSignError, NoHandsRecordedError, SessionStartError
from signalert.backend.core.history import DetectionHistory
from signalert.backend.core.session_manager import DetectionSession
from signalert.backend.core.sign_library import SignLibrary
from signalert.backend.core.sign_recorder import SignRecorder
from signalert.backend.detection.hand_capture import HandCapture
from signalert.backend.voice import VoiceAlertPlayer

logger = logging.getLogger("signalert")


def parse_args():
    parser = argparse.ArgumentParser(description="Real-time hand sign alerts")
    parser.add_argument("--camera", type=int, default=0, help="webcam index")
    parser.add_argument("--signs", default=str(config.SIGNS_PATH), help="sign library JSON file")
    parser.add_argument("--history", default=str(config.HISTORY_PATH), help="detection history JSON file")
    parser.add_argument("--fps", type=int, default=30, help="capture rate limit")
    parser.add_argument("--name", help="name of the sign to record with R")
    parser.add_argument("--description", default="", help="description of the recorded sign")
    parser.add_argument("--voice-alert", default="", help="message spoken when the recorded sign is detected")
    parser.add_argument("--mute", action="store_true", help="don't speak voice alerts")
    return parser.parse_args()


def main():
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    library = SignLibrary(args.signs)
    history = DetectionHistory(args.history)
    voice = VoiceAlertPlayer()
    recorder = SignRecorder()
    status = {"text": "Idle", "countdown": 0}

    def on_detection(result):
        history.add(result)
        status["text"] = f"DETECTED: {result.sign.name} ({result.confidence:.0%})"
        if not args.mute:
            voice.speak(result.sign)

    def on_countdown(seconds):
        status["countdown"] = seconds

    def on_state_change(state, reason):
        # Keep the detection message on screen
        if reason != "detected":
            status["text"] = f"{state.value} ({reason})"
        if state.value != "countdown":
            status["countdown"] = 0

    session = DetectionSession(
        on_detection=on_detection,
        on_countdown=on_countdown,
        on_state_change=on_state_change,
    )

    hand_capture = HandCapture()
    cap = cv2.VideoCapture(args.camera)
    if not cap.isOpened():
        logger.error("Could not open webcam %d", args.camera)
        sys.exit(1)

    interval = 1.0 / args.fps
    last_capture = 0

    print("Controls:")
    print("  S: Start detection")
    print("  D: Dismiss detection")
    if args.name:
        print(f"  R: Start/stop recording sign '{args.name}'")
    print("  Q: Quit")

    try:
        while True:
            # Time-based throttling
            now = time.time()
            if now - last_capture < interval:
                time.sleep(0.001)
                session.update()
                continue
            last_capture = now

            ret, frame = cap.read()
            if not ret:
                logger.error("Could not read frame")
                break

            # Flip for mirror effect
            frame = cv2.flip(frame, 1)

            observations = hand_capture.extract_observations(frame)
            recorder.add_frame(observations)
            session.on_frame(observations)

            # Visualization
            hand_capture.visualize_landmarks(frame)
            color = (0, 255, 0) if session.current_result else (200, 200, 200)
            cv2.putText(frame, status["text"], (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2)
            info = f"Hands: {len(observations)} | Signs: {len(library)}"
            if status["countdown"]:
                info += f" | Starting in {status['countdown']}"
            elif session.is_active:
                info += f" | {session.get_time_remaining()}s left"
            if recorder.is_recording:
                info += " | REC"
            cv2.putText(frame, info, (10, 60), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (200, 200, 200), 1)

            cv2.imshow("Sign Alert", frame)

            # Input Handling
            key = cv2.waitKey(1) & 0xFF
            if key == ord('q'):
                break
            elif key == ord('s'):
                try:
                    session.start(library.snapshot(), detector_loaded=hand_capture.is_loaded)
                except SessionStartError as e:
                    status["text"] = str(e)
            elif key == ord('d'):
                session.dismiss()
                status["text"] = "Idle"
            elif key == ord('r') and args.name:
                if not recorder.is_recording:
                    recorder.start()
                    continue
                try:
                    recorded = recorder.finish()
                    sign = library.add(args.name, args.description, recorded.landmarks,
                                       recorded.hand_type, voice_alert=args.voice_alert)
                    status["text"] = f"Saved '{sign.name}' ({recorded.frame_count} frames)"
                except (NoHandsRecordedError, InvalidSignError) as e:
                    status["text"] = str(e)

    except KeyboardInterrupt:
        pass
    finally:
        session.close()
        hand_capture.close()
        cap.release()
        cv2.destroyAllWindows()
        logger.info("Detector closed")


if __name__ == "__main__":
    main()
