import matplotlib.pyplot as plt
import lmscope.util
from lmscope import EmulatedConfig, LiveConfig, LMS1xx
from lmscope.device.mock import MockLMSTransport

CAPTURE = "mock_cycle.cap"

lmscope.util.start_log(log_to_file=False, log_to_stdout=True)

# swap the factory for None (and set host) to talk to a real sensor
mock = MockLMSTransport()
lms = LMS1xx(
    LiveConfig(host="mock", record_path=CAPTURE),
    transport_factory=lambda cfg: mock,
)
live = lms.run_full_cycle()  # connect, start, scan, stop, disconnect
lms.close()

# same exchange again, served from the capture file
lms = LMS1xx(EmulatedConfig(capture_path=CAPTURE))
replayed = lms.run_full_cycle()
lms.close()
print("replay identical:", replayed == live)

fig, ax = plt.subplots()
x, y = replayed.points().T
ax.plot(x, y, ".", markersize=2)
ax.plot(0, 0, "r^", label="sensor")
ax.set_aspect("equal")
ax.set_xlabel("x (m)")
ax.set_ylabel("y (m)")
ax.legend()
plt.show()
