import asyncio

import lmscope.util
from lmscope import AsyncLMS1xx, LiveConfig

NUM_TELEGRAMS = 50

lmscope.util.start_log(log_to_file=True, log_to_stdout=True, log_level="DEBUG")


async def main():
    async with AsyncLMS1xx(LiveConfig(host="192.168.0.1")) as lms:
        await lms.start()
        await lms.start_continuous()
        for _ in range(NUM_TELEGRAMS):
            record = await lms.fetch_continuous_scan()
            if record.is_error:
                print("error:", record.error)
                if not lms.is_connected():
                    break
                continue
            print(record.telegram_counter, record.distances.min(), record.distances.max())
        await lms.stop_continuous()
        await lms.stop()


asyncio.run(main())
lmscope.util.shutdown_log()
