import sys
from romasub.services.source_chain import build_source_chain
from romasub.utils.logger import logger
from romasub.utils.video_id import resolve_video_id
from romasub.utils.workspace import TempWorkspace

if __name__ == "__main__":
    url = sys.argv[1] if len(sys.argv) > 1 else "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
    video_id = resolve_video_id(url)
    if not video_id:
        logger.error(f"Not a video link: {url}")
        sys.exit(2)
    chain = build_source_chain()
    try:
        with TempWorkspace() as ws:
            segments = chain.run(video_id, ws)
        print("segments:", len(segments))
        for s in segments[:5]:
            print(f"[{s.start:.2f} -> {s.end:.2f}] {s.text}")
    except Exception as e:
        logger.error(f"Transcript fetch failed: {e}")
        raise
