import sys
import datetime

import journal

DEFAULT_JOURNAL_PATH = "pings.journal"
DEFAULT_CAPACITY = 256
PING_COUNT = 100


def build_ping_message(count):
    return {"m": "ping", "c": count}


def build_time_message():
    """Marks when a recording started, so a replay can tell sessions apart"""
    return {"m": "time", "time": datetime.datetime.now().isoformat()}


class Recorder(object):
    def __init__(self, path, capacity):
        self.path = path
        self.capacity = capacity

    def record(self):
        with open(self.path, "wb") as f:
            with journal.JournalWriter(f, capacity=self.capacity) as writer:
                writer.append(0, build_time_message())
                for count in range(1, PING_COUNT + 1):
                    if writer.append(count, build_ping_message(count)):
                        print("buffer wrapped while writing ping #{}".format(count))
                print(
                    "recorded {} bytes into {} with {} wraps".format(
                        writer.bytes_written(), self.path, writer.wrap_count()
                    )
                )

    def replay(self):
        with open(self.path, "rb") as f:
            for entry_id, message in journal.JournalReader(f):
                self.handle_message(entry_id, message)

    def handle_message(self, entry_id, message):
        if "m" not in message:
            print("unrecognized entry, id: {}  message: {}".format(entry_id, message))
            return
        method = message["m"]

        if method == "ping":
            if message["c"] != entry_id:
                print("ping #{} stored under entry {}".format(message["c"], entry_id))
        elif method == "time":
            print("Recording started at {}".format(message["time"]))
        else:
            print("unrecognized message method:", method)


if __name__ == "__main__":
    path = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_JOURNAL_PATH
    capacity = int(sys.argv[2]) if len(sys.argv) > 2 else DEFAULT_CAPACITY
    recorder = Recorder(path, capacity)
    recorder.record()
    recorder.replay()
    print("replayed", path)
