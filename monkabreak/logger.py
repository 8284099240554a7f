import logging

logging.basicConfig(format='%(asctime)s | %(name)s | %(message)s',
                    datefmt='%m-%d %H:%M')
logger = logging.getLogger("MONKABREAK")
logger.setLevel(logging.INFO)
